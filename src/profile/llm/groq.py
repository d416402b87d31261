"""Groq LLM provider (OpenAI-compatible API)."""

from src.profile.llm.openai_compat import OpenAICompatibleProvider


class GroqProvider(OpenAICompatibleProvider):
    """Groq-hosted Llama models. Fast enough for per-message classification."""

    display_name = "Groq"

    @property
    def provider_id(self) -> str:
        return "groq"

    @property
    def default_model(self) -> str:
        return "llama-3.1-8b-instant"

    @property
    def env_var(self) -> str:
        return "GROQ_API_KEY"

    @property
    def base_url(self) -> str:
        return "https://api.groq.com/openai/v1"
