"""Anthropic Claude LLM provider."""

import logging

from src.profile.llm.base import SYSTEM_PROMPT, LLMProvider, require_sdk

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = self.api_key()
        anthropic = require_sdk("anthropic", "anthropic", extra="anthropic")

        client = anthropic.Anthropic(api_key=api_key)
        use_model = model or self.default_model

        logger.debug("Sending prompt to Anthropic API (%s)...", use_model)
        message = client.messages.create(
            model=use_model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system if system is not None else SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )

        # Text blocks only; an empty reply falls through to the caller's fallback.
        return "".join(getattr(block, "text", "") for block in message.content)
