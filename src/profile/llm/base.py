"""Abstract base class for LLM providers and shared response parsing."""

import importlib
import json
import os
import re
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any

from src.core.schemas import CandidateProfile, Classification

SYSTEM_PROMPT = (
    "Você é o assistente virtual de uma consultoria de recrutamento e seleção. "
    "Responda sempre em português brasileiro, de forma cordial e objetiva."
)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

_PACKAGE = "recruiting-intake-agent"


def require_sdk(module: str, dist: str, extra: str | None = None) -> ModuleType:
    """Import an optional SDK, pointing at the right install command when missing."""
    try:
        return importlib.import_module(module)
    except ImportError:
        target = f"'{_PACKAGE}[{extra}]'" if extra else _PACKAGE
        msg = f"{dist} is required for this provider. Install with: pip install {target}"
        raise ImportError(msg) from None


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parse the JSON object in an LLM response.

    Handles markdown-wrapped JSON (```json ... ```), plain JSON, and an
    object embedded in surrounding prose.
    """
    cleaned = _FENCE_OPEN.sub("", raw_text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    if not cleaned.startswith("{"):
        match = _JSON_OBJECT.search(cleaned)
        if match:
            cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def parse_profile(raw_text: str) -> CandidateProfile:
    """Parse an extraction response into a CandidateProfile.

    Raises:
        ValueError: If the response is not a valid JSON object
            (pydantic.ValidationError is a ValueError subclass).
    """
    return CandidateProfile.model_validate(parse_json_object(raw_text))


def parse_classification(raw_text: str) -> Classification | None:
    """Map a one-word classifier answer to a Classification, or None."""
    answer = raw_text.strip().strip("\"'.").lower()
    for classification in (Classification.COMPANY, Classification.CANDIDATE, Classification.OTHER):
        if answer == classification.value:
            return classification
    return None


class LLMProvider(ABC):
    """Base class that every LLM provider must implement.

    Intake answers are short (a label, a JSON object, a chat reply), so
    providers run with a low temperature and a small output budget unless
    configured otherwise.
    """

    def __init__(self, temperature: float = 0.2, max_tokens: int = 512) -> None:
        self.temperature = temperature
        self.max_tokens = max_tokens

    def api_key(self) -> str | None:
        """Read the provider's API key from the environment.

        Raises:
            ValueError: If the provider needs a key and it is not set.
        """
        if self.env_var is None:
            return None
        key = os.environ.get(self.env_var)
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return key

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'groq')."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The user-turn text.
            model: Override the provider's default model. None uses default.
            system: Override the system prompt. None falls back to SYSTEM_PROMPT.

        Returns:
            Raw text response from the LLM.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""
