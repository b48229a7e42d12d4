"""
ThreatRadar - Anthropic Claude LLM Provider
Chat completions via the Anthropic Messages API.
"""

import logging
from typing import Optional

import anthropic

from threatradar.config import get_settings
from threatradar.errors import RemoteGenerationFailure
from threatradar.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Cloud LLM provider using Anthropic Claude API."""

    def __init__(self, client: Optional[anthropic.AsyncAnthropic] = None):
        settings = get_settings()
        self.api_key = settings.anthropic_api_key
        self.model = settings.anthropic_model
        self.client = client or anthropic.AsyncAnthropic(
            api_key=self.api_key, timeout=settings.llm_timeout,
        )

    @staticmethod
    def _messages(history: list[dict], message: str) -> list[dict]:
        """Claude requires the first turn to come from the user."""
        turns = [{"role": t["role"], "content": t["content"]} for t in history]
        while turns and turns[0]["role"] != "user":
            turns.pop(0)
        turns.append({"role": "user", "content": message})
        return turns

    async def chat(self, system: str, history: list[dict], message: str) -> str:
        if not self.api_key.strip():
            raise RemoteGenerationFailure(self.provider_name, "ANTHROPIC_API_KEY not configured")
        try:
            resp = await self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                system=system,
                messages=self._messages(history, message),
            )
        except anthropic.APIStatusError as e:
            logger.error(f"Anthropic API error {e.status_code}: {e.message}")
            raise RemoteGenerationFailure(self.provider_name, f"HTTP {e.status_code}")
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise RemoteGenerationFailure(self.provider_name, str(e))

        text = "".join(
            block.text for block in resp.content if getattr(block, "type", "") == "text"
        )
        if not text.strip():
            raise RemoteGenerationFailure(self.provider_name, "empty completion")
        return text

    async def health_check(self) -> bool:
        if not self.api_key.strip():
            return False
        try:
            await self.client.messages.create(
                model=self.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "ping"}],
            )
            return True
        except Exception:
            return False

    @property
    def provider_name(self) -> str:
        return "anthropic"
