"""
ThreatRadar - AI Security Assistant
Answers analyst questions about one client using retrieved context.

Flow per message:
  1. Fetch the client's latest events and assets from the row store
  2. Build the bounded context block and system prompt
  3. Call the LLM with the last N turns (bounded retry, circuit breaker)
  4. On RemoteGenerationFailure, reply with the local fallback responder

Row-store failures are not recovered here; they propagate to the caller.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from threatradar.assistant.context import build_context
from threatradar.assistant.fallback import generate_fallback_response
from threatradar.config import get_settings
from threatradar.errors import RemoteGenerationFailure
from threatradar.llm.base import LLMProvider
from threatradar.llm.prompts import ASSISTANT_SYSTEM
from threatradar.reports.aggregator import utcnow
from threatradar.resilience import CircuitBreaker, retry_with_backoff
from threatradar.store.base import RowStore

logger = logging.getLogger(__name__)

FALLBACK_SOURCE = "fallback"
DEFAULT_CLIENT_NAME = "your organization"

# One breaker for every request
_shared_breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60, name="assistant-llm")


@dataclass
class ChatMessage:
    sender: Literal["user", "assistant"]
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=utcnow)
    context: Optional[dict] = None      # {"events": n, "assets": m}
    source: Optional[str] = None        # provider name or "fallback"

    @property
    def role(self) -> str:
        return self.sender

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sender": self.sender,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context,
            "source": self.source,
        }


def greeting(client_name: Optional[str] = None) -> str:
    return (
        f"Hello! I'm your AI security assistant for {client_name or DEFAULT_CLIENT_NAME}. "
        "I can help you analyze security events, understand asset vulnerabilities, and "
        "provide recommendations based on your current security data. How can I assist you today?"
    )


class Conversation:
    """In-memory message log for one chat session. Starts with the greeting."""

    def __init__(self, client_id: str, client_name: Optional[str] = None):
        self.client_id = client_id
        self.client_name = client_name
        self.messages: list[ChatMessage] = [
            ChatMessage(sender="assistant", content=greeting(client_name))
        ]

    def add(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    def history(self, turns: int) -> list[dict]:
        """Last `turns` messages as role/content dicts."""
        recent = self.messages[-turns:] if turns > 0 else []
        return [{"role": m.role, "content": m.content} for m in recent]


class AssistantService:
    """Retrieval + generation with a deterministic local fallback."""

    def __init__(
        self,
        store: RowStore,
        provider: Optional[LLMProvider] = None,
        breaker: Optional[CircuitBreaker] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
    ):
        settings = get_settings()
        self.settings = settings
        self.store = store
        self.provider = provider
        self.breaker = breaker or _shared_breaker
        self.max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self.base_delay = settings.llm_retry_base_delay if base_delay is None else base_delay
        self.max_delay = settings.llm_retry_max_delay if max_delay is None else max_delay

    def _provider(self) -> LLMProvider:
        if self.provider is None:
            from threatradar.llm.factory import get_llm_provider
            self.provider = get_llm_provider()
        return self.provider

    async def _generate(self, system: str, history: list[dict], message: str) -> str:
        if not self.breaker.is_available():
            raise RemoteGenerationFailure(self._provider().provider_name, "circuit open")
        call = retry_with_backoff(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            retry_on=(RemoteGenerationFailure,),
        )(self._provider().chat)
        try:
            reply = await call(system, history, message)
        except RemoteGenerationFailure:
            self.breaker.record_failure()
            raise
        self.breaker.record_success()
        return reply

    async def respond(
        self,
        client_id: str,
        message: str,
        history: Optional[list[dict]] = None,
        client_name: Optional[str] = None,
    ) -> ChatMessage:
        """Produce the assistant reply to `message`.

        Raises:
            UpstreamFetchFailure: events or assets could not be fetched
        """
        s = self.settings
        events = await self.store.list_events(client_id, limit=s.assistant_event_fetch_limit)
        assets = await self.store.list_assets(client_id, limit=s.assistant_asset_fetch_limit)
        if client_name is None:
            client = await self.store.get_client(client_id)
            client_name = client.name if client else None

        context = build_context(
            events, assets, event_limit=s.context_event_limit, asset_limit=s.context_asset_limit,
        )
        system = ASSISTANT_SYSTEM.format(client_name=client_name or DEFAULT_CLIENT_NAME, context=context)
        turns = list(history or [])[-s.chat_history_turns:] if s.chat_history_turns > 0 else []

        try:
            content = await self._generate(system, turns, message)
            source = self._provider().provider_name
        except RemoteGenerationFailure as e:
            logger.warning(f"Remote generation unavailable, using local fallback: {e}")
            content = generate_fallback_response(
                message, events, assets, recommendation_limit=s.fallback_recommendation_limit,
            )
            source = FALLBACK_SOURCE

        return ChatMessage(
            sender="assistant",
            content=content,
            context={"events": len(events), "assets": len(assets)},
            source=source,
        )

    async def converse(self, conversation: Conversation, text: str) -> ChatMessage:
        """Append the user message and the reply to `conversation`."""
        history = conversation.history(self.settings.chat_history_turns)
        conversation.add(ChatMessage(sender="user", content=text))
        reply = await self.respond(
            conversation.client_id, text, history=history, client_name=conversation.client_name,
        )
        return conversation.add(reply)
