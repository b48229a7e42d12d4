"""
ThreatRadar - LLM Provider Interface
Switch between Ollama (free, local), Anthropic Claude and OpenAI GPT
with a single env var.

LLM_PROVIDER=ollama     → Local dev with qwen2.5:7b
LLM_PROVIDER=anthropic  → Claude
LLM_PROVIDER=openai     → GPT-4o

Providers raise RemoteGenerationFailure on any network, status or payload
error. The assistant recovers from it with the local fallback responder.
"""

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.
    Implementations: OllamaProvider, AnthropicProvider, OpenAIProvider
    """

    @abstractmethod
    async def chat(self, system: str, history: list[dict], message: str) -> str:
        """Generate the next assistant turn of a conversation.

        Args:
            system: System prompt including the retrieved context
            history: Prior turns as [{"role": "user"|"assistant", "content": str}]
            message: The new user message

        Returns:
            Generated reply text
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the LLM provider is available and responding."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'ollama', 'anthropic', 'openai')."""
        ...

    @staticmethod
    def build_messages(system: str, history: list[dict], message: str) -> list[dict]:
        """OpenAI-style message list: system, prior turns, new user message."""
        messages = [{"role": "system", "content": system}]
        for turn in history:
            messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": message})
        return messages
