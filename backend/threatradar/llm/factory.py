"""
ThreatRadar - LLM Provider Factory

  LLM_PROVIDER=ollama       → Free, local
  LLM_PROVIDER=anthropic    → Claude
  LLM_PROVIDER=openai       → GPT-4o

get_provider_by_name() allows a per-request provider override.
"""

import logging
from typing import Optional

from threatradar.config import get_settings
from threatradar.llm.base import LLMProvider

logger = logging.getLogger(__name__)

# Provider instance cache (one per provider type)
_provider_cache: dict[str, LLMProvider] = {}


def _create_provider(name: str) -> LLMProvider:
    """Create a provider instance by name."""
    if name == "anthropic":
        from threatradar.llm.anthropic_provider import AnthropicProvider
        return AnthropicProvider()
    elif name == "openai":
        from threatradar.llm.openai_provider import OpenAIProvider
        return OpenAIProvider()
    elif name == "ollama":
        from threatradar.llm.ollama_provider import OllamaProvider
        return OllamaProvider()
    else:
        raise ValueError(
            f"Unknown LLM provider: '{name}'. "
            "Use 'ollama', 'anthropic'/'claude', or 'openai'/'gpt'."
        )


def get_provider_by_name(name: Optional[str] = None) -> LLMProvider:
    """Get a provider by name, with caching.

    Args:
        name: Provider name ('ollama', 'anthropic'/'claude', 'openai'/'gpt')
              None = use default from LLM_PROVIDER

    Returns:
        Cached LLMProvider instance
    """
    if not name:
        name = get_settings().llm_provider

    # Normalize aliases
    name = name.lower().strip()
    if name == "claude":
        name = "anthropic"
    elif name == "gpt":
        name = "openai"

    if name not in _provider_cache:
        _provider_cache[name] = _create_provider(name)
        logger.info(f"Created LLM provider: {name}")

    return _provider_cache[name]


def get_llm_provider() -> LLMProvider:
    """Get the default LLM provider from config."""
    return get_provider_by_name()
