"""
ThreatRadar - AI Assistant Tests
Tests: assistant/fallback.py, assistant/context.py, assistant/chat.py, resilience.py
Run: pytest tests/test_assistant.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from helpers import (
    CLIENT_ID, InMemoryRowStore, ScriptedProvider, asset_row, event_row, make_asset, make_event, vuln,
)
from threatradar.assistant.chat import AssistantService, Conversation, greeting
from threatradar.assistant.context import build_context, most_recent
from threatradar.assistant.fallback import (
    CAPABILITIES, NO_ASSETS, NO_EVENTS, NOTHING_TO_CLASSIFY,
    classify_event, generate_fallback_response,
)
from threatradar.errors import UpstreamFetchFailure
from threatradar.resilience import CircuitBreaker


def _events():
    return [
        make_event("E-1", severity="critical", alert_name="Trojan Dropper", event_type="malware_detection",
                   host_name="DC-SERVER-01", timestamp="2025-03-20T10:00:00Z"),
        make_event("E-2", severity="high", alert_name="Brute Force Attack", event_type="authentication_failure",
                   timestamp="2025-03-19T10:00:00Z"),
        make_event("E-3", severity="low", alert_name="Policy Change", event_type="file_modification",
                   timestamp="2025-03-18T10:00:00Z"),
    ]


def _assets():
    return [
        make_asset("a-1", name="DC-SERVER-01", ip_address="192.168.1.10", vulnerabilities=[vuln("high")]),
        make_asset("a-2", name="BACKUP-SERVER-06", ip_address="192.168.1.60", status="offline"),
    ]


def _store(event_count=3, **kwargs):
    logs = [
        event_row(f"E-{i}", severity="high" if i % 2 else "low", timestamp=f"2025-03-{10 + i:02d}T08:00:00Z")
        for i in range(event_count)
    ]
    return InMemoryRowStore(
        clients=[{"id": CLIENT_ID, "name": "Acme Corp", "email": "soc@acme.test", "settings": {}}],
        assets=[asset_row(f"a-{i}", name=f"HOST-{i}") for i in range(7)],
        logs=logs,
        **kwargs,
    )


def _service(store, provider, **kwargs):
    kwargs.setdefault("max_retries", 2)
    kwargs.setdefault("base_delay", 0)
    kwargs.setdefault("max_delay", 0)
    kwargs.setdefault("breaker", CircuitBreaker())
    return AssistantService(store, provider=provider, **kwargs)


# ═══════════════════════════════════════
# Classification
# ═══════════════════════════════════════

class TestClassifyEvent:
    def test_malware(self):
        assert classify_event(make_event(severity="critical", alert_name="Trojan found")) == \
            "True Positive - Malware Detection"

    def test_malware_by_event_type(self):
        assert classify_event(make_event(severity="high", alert_name="x", event_type="malware_detection")) == \
            "True Positive - Malware Detection"

    def test_intrusion(self):
        assert classify_event(make_event(severity="high", alert_name="SSH Brute Force Attack")) == \
            "True Positive - Intrusion Attempt"

    def test_generic_threat(self):
        assert classify_event(make_event(severity="critical", alert_name="Phishing Link",
                                         event_type="email")) == "True Positive - Security Threat"

    @pytest.mark.parametrize("severity", ["low", "info"])
    def test_low_is_normal(self, severity):
        assert classify_event(make_event(severity=severity)) == "True Negative - Normal Activity"

    @pytest.mark.parametrize("severity", ["medium", "weird", None])
    def test_needs_investigation(self, severity):
        assert classify_event(make_event(severity=severity)) == "Requires Investigation"


# ═══════════════════════════════════════
# Fallback routing
# ═══════════════════════════════════════

class TestFallbackResponder:
    def test_events_summary(self):
        reply = generate_fallback_response("Show me recent alerts", _events(), _assets())
        assert reply.startswith(
            "Based on recent activity, I found 3 security events. "
            "2 are high/critical severity requiring attention."
        )
        assert "• Trojan Dropper on DC-SERVER-01 - critical severity" in reply
        assert "Prioritize investigation of critical events" in reply

    def test_events_quiet(self):
        reply = generate_fallback_response("any incidents?", [make_event(severity="low")], [])
        assert "0 are high/critical" in reply
        assert "Continue monitoring current security posture." in reply

    def test_event_keywords_win(self):
        reply = generate_fallback_response("Please analyze this alert and recommend", _events(), _assets())
        assert reply.startswith("Based on recent activity")

    def test_asset_summary(self):
        reply = generate_fallback_response("Which SYSTEMS are exposed?", _events(), _assets())
        assert reply.startswith("Asset Status Summary:")
        assert "• Total monitored assets: 2" in reply
        assert "• Offline assets: 1" in reply
        assert "• DC-SERVER-01 (192.168.1.10) - 1 vulnerabilities" in reply

    def test_classify_most_recent(self):
        reply = generate_fallback_response("What is this?", list(reversed(_events())), _assets())
        assert "Event: Trojan Dropper" in reply
        assert "Classification: True Positive - Malware Detection" in reply
        assert "DC-SERVER-01" in reply

    def test_classify_shows_analyst_label(self):
        events = [make_event(severity="low", label="FP")]
        reply = generate_fallback_response("classify it", events, [])
        assert "Analyst label: False Positive" in reply
        assert "True Negative - Normal Activity" in reply

    def test_recommendations_capped(self):
        reply = generate_fallback_response("any advice?", _events(), _assets())
        assert reply.startswith("Security Recommendations:")
        assert "5. " in reply
        assert "6. " not in reply
        assert "Patch vulnerabilities on 1 affected systems" in reply

    def test_recommendations_quiet(self):
        reply = generate_fallback_response("suggest something", [], [])
        assert "1. Enable multi-factor authentication on all administrative accounts" in reply
        assert "4. " not in reply

    def test_capabilities(self):
        assert generate_fallback_response("hello there", _events(), _assets()) == CAPABILITIES

    def test_empty_data(self):
        assert generate_fallback_response("events?", [], []) == NO_EVENTS
        assert generate_fallback_response("assets?", [], []) == NO_ASSETS
        assert generate_fallback_response("classify", [], []) == NOTHING_TO_CLASSIFY

    def test_deterministic(self):
        a = generate_fallback_response("recommend", _events(), _assets())
        b = generate_fallback_response("recommend", _events(), _assets())
        assert a == b


# ═══════════════════════════════════════
# Context block
# ═══════════════════════════════════════

class TestContext:
    def test_counts_and_sections(self):
        context = build_context(_events(), _assets())
        assert "Recent security events: 3" in context
        assert "Critical/high severity events: 2" in context
        assert "Monitored assets: 2" in context
        assert "High-risk assets (critical/high vulnerabilities): DC-SERVER-01" in context
        assert "Offline assets: BACKUP-SERVER-06" in context

    def test_limits(self):
        events = [make_event(f"E-{i}", timestamp=f"2025-03-{i + 1:02d}T00:00:00Z") for i in range(9)]
        context = build_context(events, [], event_limit=2)
        assert context.count("| severity:") == 2

    def test_most_recent_undated_last(self):
        events = [
            make_event("old", timestamp="2025-01-01T00:00:00Z"),
            make_event("undated", timestamp=None),
            make_event("new", timestamp="2025-02-01T00:00:00Z"),
        ]
        assert [e.event_id for e in most_recent(events, 3)] == ["new", "old", "undated"]


# ═══════════════════════════════════════
# Assistant service
# ═══════════════════════════════════════

class TestAssistantService:
    @pytest.mark.asyncio
    async def test_remote_reply(self):
        provider = ScriptedProvider(reply="All quiet on DC-SERVER-01")
        reply = await _service(_store(), provider).respond(CLIENT_ID, "status?")
        assert reply.content == "All quiet on DC-SERVER-01"
        assert reply.source == "scripted"
        assert reply.sender == "assistant"
        assert reply.context == {"events": 3, "assets": 5}
        assert 'client "Acme Corp"' in provider.calls[0]["system"]

    @pytest.mark.asyncio
    async def test_fetch_limits(self):
        provider = ScriptedProvider()
        reply = await _service(_store(event_count=15), provider).respond(CLIENT_ID, "hi", client_name="Acme")
        assert reply.context == {"events": 10, "assets": 5}

    @pytest.mark.asyncio
    async def test_fallback_after_retries(self):
        provider = ScriptedProvider(fail=True)
        reply = await _service(_store(), provider).respond(CLIENT_ID, "show recent events")
        assert len(provider.calls) == 3
        assert reply.source == "fallback"
        assert reply.content.startswith("Based on recent activity, I found 3 security events.")

    @pytest.mark.asyncio
    async def test_history_trimmed(self):
        provider = ScriptedProvider()
        history = [{"role": "user" if i % 2 == 0 else "assistant", "content": f"turn {i}"} for i in range(14)]
        await _service(_store(), provider).respond(CLIENT_ID, "next", history=history)
        sent = provider.calls[0]["history"]
        assert len(sent) == 10
        assert sent[0]["content"] == "turn 4"
        assert provider.calls[0]["message"] == "next"

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        provider = ScriptedProvider()
        with pytest.raises(UpstreamFetchFailure):
            await _service(_store(fail=True), provider).respond(CLIENT_ID, "hi")
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_open_circuit_skips_remote(self):
        provider = ScriptedProvider(fail=True)
        service = _service(_store(), provider, max_retries=0, breaker=CircuitBreaker(failure_threshold=1))
        await service.respond(CLIENT_ID, "hi")
        assert service.breaker.state == "OPEN"
        reply = await service.respond(CLIENT_ID, "hi")
        assert len(provider.calls) == 1
        assert reply.source == "fallback"
        assert reply.content == CAPABILITIES

    @pytest.mark.asyncio
    async def test_conversation(self):
        provider = ScriptedProvider(reply="Noted")
        conversation = Conversation(CLIENT_ID, "Acme Corp")
        assert conversation.messages[0].content == greeting("Acme Corp")
        reply = await _service(_store(), provider).converse(conversation, "hello")
        assert [m.sender for m in conversation.messages] == ["assistant", "user", "assistant"]
        assert conversation.messages[-1] is reply
        # greeting is passed as prior context
        assert provider.calls[0]["history"][0]["role"] == "assistant"


class TestGreeting:
    def test_default_name(self):
        assert "your organization" in greeting()

    def test_client_name(self):
        assert greeting("Acme Corp").startswith("Hello! I'm your AI security assistant for Acme Corp.")
