"""Google Gemini LLM provider (google-genai SDK)."""

import logging

from src.profile.llm.base import SYSTEM_PROMPT, LLMProvider, require_sdk

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = self.api_key()
        genai = require_sdk("google.genai", "google-genai", extra="gemini")
        types = require_sdk("google.genai.types", "google-genai", extra="gemini")

        client = genai.Client(api_key=api_key)
        use_model = model or self.default_model

        logger.debug("Sending prompt to Gemini API (%s)...", use_model)
        response = client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system if system is not None else SYSTEM_PROMPT,
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
            ),
        )

        return response.text or ""
