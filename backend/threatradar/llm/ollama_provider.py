"""
ThreatRadar - Ollama LLM Provider
Free, local LLM inference using Ollama + qwen2.5:7b (or any model).
Uses /api/chat so prior conversation turns are passed natively.
"""

import logging
from typing import Optional

import httpx

from threatradar.config import get_settings
from threatradar.errors import RemoteGenerationFailure
from threatradar.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OllamaProvider(LLMProvider):
    """Local LLM provider using Ollama."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.base_url = settings.ollama_url.rstrip("/")
        self.model = settings.ollama_model
        self.timeout = settings.llm_timeout
        self._transport = transport

    async def chat(self, system: str, history: list[dict], message: str) -> str:
        payload = {
            "model": self.model,
            "messages": self.build_messages(system, history, message),
            "stream": False,
            "options": {
                "temperature": 0.3,
                "num_predict": 1024,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}/api/chat", json=payload)
                resp.raise_for_status()
                return resp.json()["message"]["content"]
        except httpx.ConnectError:
            raise RemoteGenerationFailure(self.provider_name, "cannot connect to Ollama")
        except httpx.TimeoutException:
            raise RemoteGenerationFailure(self.provider_name, "request timed out")
        except httpx.HTTPError as e:
            logger.error(f"Ollama chat failed: {e}")
            raise RemoteGenerationFailure(self.provider_name, str(e) or type(e).__name__)
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteGenerationFailure(self.provider_name, f"malformed response: {e}")

    async def health_check(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
                return resp.status_code == 200
        except Exception:
            return False

    @property
    def provider_name(self) -> str:
        return "ollama"
