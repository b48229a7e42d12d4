"""
ThreatRadar - Test Helpers
Row factories, an in-memory row store and a scripted LLM provider shared
by the test modules.
"""

import os
import sys
from typing import Any, Optional

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from threatradar.domain import Asset, Event
from threatradar.errors import RemoteGenerationFailure, UpstreamFetchFailure
from threatradar.llm.base import LLMProvider
from threatradar.store.base import RowStore

CLIENT_ID = "11111111-1111-1111-1111-111111111111"


def event_row(event_id: str = "EVT-1", **overrides) -> dict:
    row = {
        "event_id": event_id,
        "client_id": CLIENT_ID,
        "timestamp": "2025-03-15T12:00:00+00:00",
        "severity": "medium",
        "event_type": "network_anomaly",
        "alert_name": "Suspicious Traffic",
        "host_name": "WEB-SERVER-02",
        "host_ip": "192.168.1.20",
        "label": None,
        "status": "active",
        "comments": None,
    }
    row.update(overrides)
    return row


def make_event(event_id: str = "EVT-1", **overrides) -> Event:
    return Event.from_row(event_row(event_id, **overrides))


def asset_row(asset_id: str = "a-1", **overrides) -> dict:
    row = {
        "id": asset_id,
        "client_id": CLIENT_ID,
        "name": "WEB-SERVER-02",
        "ip_address": "192.168.1.20",
        "status": "online",
        "vulnerabilities": [],
    }
    row.update(overrides)
    return row


def make_asset(asset_id: str = "a-1", **overrides) -> Asset:
    return Asset.from_row(asset_row(asset_id, **overrides))


def vuln(severity: str, cve: str = "CVE-2024-0001") -> dict:
    return {"cve": cve, "severity": severity, "description": f"{severity} issue"}


class InMemoryRowStore(RowStore):
    """Row store over plain lists. Set fail=True to simulate an outage."""

    def __init__(self, clients=None, assets=None, logs=None, fail: bool = False):
        self.tables = {
            "clients": list(clients or []),
            "assets": list(assets or []),
            "logs": list(logs or []),
        }
        self.fail = fail
        self.queries: list[tuple] = []

    @property
    def backend_name(self) -> str:
        return "memory"

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        self.queries.append((table, dict(filters or {})))
        if self.fail:
            raise UpstreamFetchFailure(table, "store offline")
        if table not in self.tables:
            raise UpstreamFetchFailure(table, "unknown table")

        rows = [
            r for r in self.tables[table]
            if all(str(r.get(k)) == str(v) for k, v in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: str(r.get(order_by) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [dict(r) for r in rows]

    async def health_check(self) -> bool:
        return not self.fail


class ScriptedProvider(LLMProvider):
    """Returns a fixed reply, or raises RemoteGenerationFailure when fail=True."""

    def __init__(self, reply: str = "Scripted reply", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: list[dict] = []

    async def chat(self, system: str, history: list[dict], message: str) -> str:
        self.calls.append({"system": system, "history": list(history), "message": message})
        if self.fail:
            raise RemoteGenerationFailure(self.provider_name, "connection refused")
        return self.reply

    async def health_check(self) -> bool:
        return not self.fail

    @property
    def provider_name(self) -> str:
        return "scripted"
