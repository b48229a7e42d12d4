"""
ThreatRadar - OpenAI GPT Provider
Chat completions over httpx against any OpenAI-compatible endpoint.

Setup:
  OPENAI_API_KEY=sk-...
  OPENAI_MODEL=gpt-4o
  OPENAI_BASE_URL=https://api.openai.com/v1
"""

import logging
from typing import Optional

import httpx

from threatradar.config import get_settings
from threatradar.errors import RemoteGenerationFailure
from threatradar.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.api_key = settings.openai_api_key
        self.model = settings.openai_model
        self.base_url = settings.openai_base_url.rstrip("/")
        self.timeout = settings.llm_timeout
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "openai"

    async def chat(self, system: str, history: list[dict], message: str) -> str:
        if not self.api_key.strip():
            raise RemoteGenerationFailure(self.provider_name, "OPENAI_API_KEY not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": self.build_messages(system, history, message),
                        "temperature": 0.3,
                    },
                )
                resp.raise_for_status()
                return resp.json()["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as e:
            logger.error(f"OpenAI returned {e.response.status_code}")
            raise RemoteGenerationFailure(self.provider_name, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise RemoteGenerationFailure(self.provider_name, str(e) or type(e).__name__)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RemoteGenerationFailure(self.provider_name, f"malformed response: {e}")

    async def health_check(self) -> bool:
        """Verify OpenAI API connectivity."""
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.get(
                    f"{self.base_url}/models",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                return resp.status_code == 200
        except Exception:
            return False
