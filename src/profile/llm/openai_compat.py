"""Shared chat-completions client for OpenAI-compatible endpoints."""

import logging

from src.profile.llm.base import SYSTEM_PROMPT, LLMProvider, require_sdk

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    """Provider speaking the OpenAI chat-completions API.

    Subclasses only differ in endpoint, credentials and default model.
    """

    display_name = "OpenAI"

    @property
    def base_url(self) -> str | None:
        """Endpoint override, or None for the SDK default."""
        return None

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = self.api_key()
        openai = require_sdk("openai", "openai")

        client = openai.OpenAI(base_url=self.base_url, api_key=api_key or self.provider_id)
        use_model = model or self.default_model
        use_system = system if system is not None else SYSTEM_PROMPT

        logger.debug("Sending prompt to %s (%s)...", self.display_name, use_model)
        response = client.chat.completions.create(
            model=use_model,
            messages=[
                {"role": "system", "content": use_system},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        return response.choices[0].message.content or ""
