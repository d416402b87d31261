"""LLM provider registry with lazy loading.

Usage:
    from src.profile.llm import get_provider, parse_profile

    provider = get_provider("groq")
    raw = provider.complete(prompt)
    profile = parse_profile(raw)
"""

from __future__ import annotations

import importlib
from typing import Any

from src.profile.llm.base import LLMProvider, parse_classification, parse_profile

__all__ = [
    "LLMProvider",
    "available_providers",
    "get_provider",
    "parse_classification",
    "parse_profile",
]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "groq": ("src.profile.llm.groq", "GroqProvider"),
    "anthropic": ("src.profile.llm.anthropic", "AnthropicProvider"),
    "openai": ("src.profile.llm.openai", "OpenAIProvider"),
    "gemini": ("src.profile.llm.gemini", "GeminiProvider"),
    "ollama": ("src.profile.llm.ollama", "OllamaProvider"),
}


def get_provider(name: str, **options: Any) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Args:
        name: Provider identifier (groq, anthropic, openai, gemini, ollama).
        **options: Generation settings passed to the provider (temperature,
            max_tokens).

    Returns:
        An LLMProvider instance.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(**options)  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
