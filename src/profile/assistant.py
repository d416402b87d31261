"""LLM-backed classification, profile extraction and free chat.

Providers are synchronous SDK clients, so every call runs in a worker
thread. Failures never propagate: each operation has a fallback value.
"""

import asyncio
import logging

from src.conversation.messages import LLM_UNAVAILABLE
from src.core.config import CompanyConfig
from src.core.schemas import CandidateProfile, Classification
from src.profile.llm import LLMProvider, parse_classification, parse_profile
from src.profile.prompts import (
    CLASSIFY_SYSTEM,
    EXTRACT_SYSTEM,
    classify_prompt,
    conversation_system_prompt,
    extract_prompt,
    render_transcript,
)

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFICATION = Classification.CANDIDATE


class RecruitingAssistant:
    def __init__(
        self,
        provider: LLMProvider,
        company: CompanyConfig,
        model: str | None = None,
    ) -> None:
        self._provider = provider
        self._company = company
        self._model = model

    @property
    def provider_id(self) -> str:
        return self._provider.provider_id

    async def _complete(self, prompt: str, system: str) -> str:
        return await asyncio.to_thread(
            self._provider.complete, prompt, self._model, system=system
        )

    async def classify(self, text: str) -> Classification:
        """Classify a contact from one message. Falls back to CANDIDATE."""
        try:
            raw = await self._complete(classify_prompt(text), CLASSIFY_SYSTEM)
        except Exception:
            logger.warning("Classification failed, defaulting to candidate", exc_info=True)
            return DEFAULT_CLASSIFICATION

        classification = parse_classification(raw)
        if classification is None:
            logger.info("Unrecognised classifier answer %r, defaulting to candidate", raw)
            return DEFAULT_CLASSIFICATION

        logger.info("Classified %r as %s", text[:60], classification.value)
        return classification

    async def extract_profile(self, text: str) -> CandidateProfile:
        """Extract profile fields from one candidate message.

        Returns an all-null profile when the LLM fails or its answer can't
        be parsed. Not retried.
        """
        try:
            raw = await self._complete(extract_prompt(text), EXTRACT_SYSTEM)
        except Exception:
            logger.warning("Profile extraction call failed", exc_info=True)
            return CandidateProfile()

        try:
            profile = parse_profile(raw)
        except ValueError:
            logger.warning("Could not parse extracted profile: %r", raw[:200], exc_info=True)
            return CandidateProfile()

        logger.debug("Extracted profile: %s", profile.model_dump(exclude_none=True))
        return profile

    async def converse(
        self,
        messages: list[dict[str, str]],
        context: dict[str, object] | None = None,
    ) -> str:
        """Free-form reply to a chat history of {'role', 'content'} dicts.

        ``context`` may carry user_type, business_hours and job_count.
        """
        context = context or {}
        system = conversation_system_prompt(
            self._company,
            user_type=context.get("user_type"),  # type: ignore[arg-type]
            business_hours=context.get("business_hours"),  # type: ignore[arg-type]
            job_count=context.get("job_count"),  # type: ignore[arg-type]
        )
        try:
            reply = await self._complete(render_transcript(messages), system)
        except Exception:
            logger.warning("Conversation reply failed", exc_info=True)
            return LLM_UNAVAILABLE

        return reply.strip() or LLM_UNAVAILABLE
