"""Ollama local LLM provider (OpenAI-compatible endpoint, no API key)."""

import os

from src.profile.llm.openai_compat import OpenAICompatibleProvider

_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAICompatibleProvider):
    """Self-hosted models served by Ollama.

    Set OLLAMA_BASE_URL to reach a server other than localhost.
    """

    display_name = "Ollama"

    @property
    def provider_id(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return "llama3"

    @property
    def env_var(self) -> None:
        return None

    @property
    def base_url(self) -> str:
        return os.environ.get("OLLAMA_BASE_URL", _OLLAMA_BASE_URL)
