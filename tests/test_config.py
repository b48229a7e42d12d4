"""
ThreatRadar - Config, Factory & Provider Tests
Tests: config.py, store/factory.py, llm/factory.py, llm providers (mocked HTTP), resilience.py,
       domain.py parsing
Run: pytest tests/test_config.py -v
"""

import json
import os
import sys
from unittest.mock import patch

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from threatradar.errors import RemoteGenerationFailure


# ═══════════════════════════════════════
# config.py - Settings
# ═══════════════════════════════════════

class TestSettings:
    def test_default_settings(self):
        from threatradar.config import Settings
        with patch.dict(os.environ, {}, clear=True):
            s = Settings()
            assert s.app_name == "ThreatRadar"
            assert s.store_backend == "sql"
            assert s.llm_provider == "ollama"
            assert s.auth_provider == "none"
            assert s.chat_history_turns == 10
            assert s.report_default_days == 30
            assert s.telemetry_system_uptime is None

    def test_auth_enabled(self):
        from threatradar.config import Settings
        with patch.dict(os.environ, {"AUTH_PROVIDER": "supabase"}, clear=True):
            assert Settings().auth_enabled is True
        with patch.dict(os.environ, {}, clear=True):
            assert Settings().auth_enabled is False

    def test_local_mode(self):
        from threatradar.config import Settings
        with patch.dict(os.environ, {"LLM_PROVIDER": "anthropic"}, clear=True):
            assert Settings().is_local_mode is False
        with patch.dict(os.environ, {"LLM_PROVIDER": "ollama"}, clear=True):
            assert Settings().is_local_mode is True

    def test_telemetry_from_env(self):
        from threatradar.config import Settings
        with patch.dict(os.environ, {"TELEMETRY_SYSTEM_UPTIME": "99.95"}, clear=True):
            assert Settings().telemetry_system_uptime == 99.95

    def test_invalid_store_backend(self):
        from pydantic import ValidationError
        from threatradar.config import Settings
        with patch.dict(os.environ, {"STORE_BACKEND": "mongo"}, clear=True):
            with pytest.raises(ValidationError):
                Settings()

    def test_get_settings_cached(self):
        from threatradar.config import get_settings
        assert get_settings() is get_settings()


# ═══════════════════════════════════════
# Factories
# ═══════════════════════════════════════

class TestStoreFactory:
    def test_supabase_store(self):
        from threatradar.store.factory import get_row_store
        from threatradar.store.supabase_store import SupabaseRowStore
        store = get_row_store("supabase")
        assert isinstance(store, SupabaseRowStore)
        assert store.backend_name == "supabase"
        assert get_row_store("SUPABASE") is store

    def test_unknown_store(self):
        from threatradar.store.factory import get_row_store
        with pytest.raises(ValueError):
            get_row_store("mongo")


class TestLLMFactory:
    def test_ollama(self):
        from threatradar.llm.factory import get_provider_by_name
        assert get_provider_by_name("ollama").provider_name == "ollama"

    def test_aliases(self):
        from threatradar.llm.factory import get_provider_by_name
        assert get_provider_by_name("gpt") is get_provider_by_name("openai")
        assert get_provider_by_name("claude").provider_name == "anthropic"

    def test_unknown_provider(self):
        from threatradar.llm.factory import get_provider_by_name
        with pytest.raises(ValueError):
            get_provider_by_name("bard")


# ═══════════════════════════════════════
# LLM providers
# ═══════════════════════════════════════

class TestLLMProviders:
    def test_build_messages(self):
        from threatradar.llm.base import LLMProvider
        msgs = LLMProvider.build_messages("sys", [{"role": "assistant", "content": "hi"}], "q")
        assert msgs == [
            {"role": "system", "content": "sys"},
            {"role": "assistant", "content": "hi"},
            {"role": "user", "content": "q"},
        ]

    def test_anthropic_first_turn_is_user(self):
        from threatradar.llm.anthropic_provider import AnthropicProvider
        turns = AnthropicProvider._messages(
            [{"role": "assistant", "content": "greeting"}, {"role": "user", "content": "a"},
             {"role": "assistant", "content": "b"}],
            "c",
        )
        assert [t["role"] for t in turns] == ["user", "assistant", "user"]
        assert turns[-1]["content"] == "c"

    @pytest.mark.asyncio
    async def test_anthropic_without_key_fails(self):
        from threatradar.llm.anthropic_provider import AnthropicProvider
        provider = AnthropicProvider(client=object())
        provider.api_key = ""
        with pytest.raises(RemoteGenerationFailure):
            await provider.chat("sys", [], "hello")

    @pytest.mark.asyncio
    async def test_ollama_chat(self):
        from threatradar.llm.ollama_provider import OllamaProvider
        seen = {}

        def handler(request: httpx.Request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "All clear"}})

        provider = OllamaProvider(transport=httpx.MockTransport(handler))
        reply = await provider.chat("sys", [{"role": "user", "content": "earlier"}], "now?")
        assert reply == "All clear"
        assert seen["path"] == "/api/chat"
        assert seen["body"]["stream"] is False
        assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user", "user"]

    @pytest.mark.asyncio
    async def test_ollama_unreachable(self):
        from threatradar.llm.ollama_provider import OllamaProvider

        def handler(request: httpx.Request):
            raise httpx.ConnectError("refused", request=request)

        provider = OllamaProvider(transport=httpx.MockTransport(handler))
        with pytest.raises(RemoteGenerationFailure) as exc:
            await provider.chat("sys", [], "hi")
        assert exc.value.provider == "ollama"

    @pytest.mark.asyncio
    async def test_ollama_malformed(self):
        from threatradar.llm.ollama_provider import OllamaProvider
        provider = OllamaProvider(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        with pytest.raises(RemoteGenerationFailure):
            await provider.chat("sys", [], "hi")

    @pytest.mark.asyncio
    async def test_openai_chat(self):
        from threatradar.llm.openai_provider import OpenAIProvider

        def handler(request: httpx.Request):
            assert request.headers["authorization"] == "Bearer sk-test"
            return httpx.Response(200, json={"choices": [{"message": {"content": "Patch DC-SERVER-01"}}]})

        provider = OpenAIProvider(transport=httpx.MockTransport(handler))
        provider.api_key = "sk-test"
        assert await provider.chat("sys", [], "what now?") == "Patch DC-SERVER-01"

    @pytest.mark.asyncio
    async def test_openai_status_error(self):
        from threatradar.llm.openai_provider import OpenAIProvider
        provider = OpenAIProvider(transport=httpx.MockTransport(lambda r: httpx.Response(429, json={})))
        provider.api_key = "sk-test"
        with pytest.raises(RemoteGenerationFailure) as exc:
            await provider.chat("sys", [], "hi")
        assert "HTTP 429" in str(exc.value)


# ═══════════════════════════════════════
# resilience.py
# ═══════════════════════════════════════

class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        from threatradar.resilience import retry_with_backoff
        attempts = []

        @retry_with_backoff(max_retries=2, base_delay=0, max_delay=0)
        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RemoteGenerationFailure("test", "transient")
            return "ok"

        assert await flaky() == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_gives_up(self):
        from threatradar.resilience import retry_with_backoff
        attempts = []

        @retry_with_backoff(max_retries=1, base_delay=0, max_delay=0)
        async def broken():
            attempts.append(1)
            raise RemoteGenerationFailure("test", "down")

        with pytest.raises(RemoteGenerationFailure):
            await broken()
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_only_retries_listed_errors(self):
        from threatradar.resilience import retry_with_backoff
        attempts = []

        @retry_with_backoff(max_retries=3, base_delay=0, retry_on=(RemoteGenerationFailure,))
        async def bug():
            attempts.append(1)
            raise KeyError("x")

        with pytest.raises(KeyError):
            await bug()
        assert len(attempts) == 1

    def test_circuit_breaker(self):
        from threatradar.resilience import CircuitBreaker
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        cb.record_failure()
        assert cb.is_available()
        cb.record_failure()
        assert cb.state == "OPEN"
        assert not cb.is_available()
        cb.record_success()
        assert cb.state == "CLOSED"


# ═══════════════════════════════════════
# domain.py
# ═══════════════════════════════════════

class TestDomainParsing:
    def test_severity_parse(self):
        from threatradar.domain import Severity
        assert Severity.parse(" Critical ") == Severity.CRITICAL
        assert Severity.parse("severe") == Severity.UNSPECIFIED
        assert Severity.parse(3) == Severity.UNSPECIFIED

    def test_label_parse(self):
        from threatradar.domain import Label
        assert Label.parse("fp") == Label.FP
        assert Label.parse(None) == Label.UNCLASSIFIED
        assert Label.TP.display == "True Positive"

    def test_parse_timestamp(self):
        from datetime import timezone
        from threatradar.domain import parse_timestamp
        assert parse_timestamp("2025-03-01T00:00:00Z").tzinfo == timezone.utc
        assert parse_timestamp("2025-03-01T00:00:00").tzinfo == timezone.utc
        assert parse_timestamp("garbage") is None
        assert parse_timestamp("") is None

    def test_client_settings_defaults(self):
        from threatradar.domain import ClientSettings, Severity
        s = ClientSettings.parse({"alert_threshold": "bogus", "auto_email": "yes", "timezone": "UTC"})
        assert s.alert_threshold == Severity.MEDIUM
        assert s.auto_email is False
        assert s.to_dict()["timezone"] == "UTC"

    def test_vulnerabilities_tolerant(self):
        from threatradar.domain import Vulnerability
        vulns = Vulnerability.parse_list([{"cve": "CVE-1", "severity": "HIGH"}, "junk", 5])
        assert len(vulns) == 1
        assert vulns[0].severity.value == "high"
        assert Vulnerability.parse_list({"cve": "x"}) == []
