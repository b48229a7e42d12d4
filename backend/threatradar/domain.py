"""
ThreatRadar - Domain Types
Typed views over raw store rows (clients, assets, logs).

Rows arrive as loosely-typed dicts (JSON columns, nullable text), so every
parser here is total: unknown enum values fall back to an explicit default
and malformed nested payloads are dropped instead of raising.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional

logger = logging.getLogger(__name__)


# ============================================================
# Enums
# ============================================================

class Severity(str, PyEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNSPECIFIED
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNSPECIFIED


# Histogram buckets, in display order
SEVERITY_BUCKETS = (
    Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW, Severity.INFO,
)


class Label(str, PyEnum):
    """Analyst classification of an event."""
    TP = "TP"
    TN = "TN"
    FP = "FP"
    FN = "FN"
    UNCLASSIFIED = "unclassified"

    @classmethod
    def parse(cls, value: Any) -> "Label":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() in ("TP", "TN", "FP", "FN"):
            return cls(value.strip().upper())
        return cls.UNCLASSIFIED

    @property
    def display(self) -> str:
        return {
            "TP": "True Positive",
            "TN": "True Negative",
            "FP": "False Positive",
            "FN": "False Negative",
        }.get(self.value, "Unclassified")


class AssetStatus(str, PyEnum):
    ONLINE = "online"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "AssetStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


# ============================================================
# Helpers
# ============================================================

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a store timestamp into an aware UTC datetime.

    Accepts datetime objects and ISO-8601 strings (with or without a
    trailing Z). Naive values are taken as UTC. Returns None when the
    value cannot be interpreted.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


# Forensic columns carried through unvalidated
FORENSIC_FIELDS = (
    "alert_category", "detection_engine", "action_taken",
    "process_name", "process_path", "process_id",
    "parent_process_name", "parent_process_id", "user_name",
    "file_name", "file_path", "file_hash_md5", "file_hash_sha256",
    "network_connection", "source_ip", "source_port",
    "destination_ip", "destination_port", "protocol",
    "registry_key", "persistence_mechanism", "geo_location",
    "mitre_attack_tactic", "mitre_attack_technique",
)


# ============================================================
# Records
# ============================================================

@dataclass
class Event:
    """One detected security occurrence (a row of the logs table)."""

    event_id: str
    timestamp: Optional[datetime]
    severity: Severity = Severity.UNSPECIFIED
    client_id: str = ""
    event_type: str = ""
    alert_name: str = ""
    host_name: str = ""
    host_ip: str = ""
    label: Label = Label.UNCLASSIFIED
    status: str = ""
    comments: str = ""
    forensics: dict = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict) -> "Event":
        return cls(
            event_id=_text(row.get("event_id")),
            timestamp=parse_timestamp(row.get("timestamp")),
            severity=Severity.parse(row.get("severity")),
            client_id=_text(row.get("client_id")),
            event_type=_text(row.get("event_type")),
            alert_name=_text(row.get("alert_name")),
            host_name=_text(row.get("host_name")),
            host_ip=_text(row.get("host_ip")),
            label=Label.parse(row.get("label")),
            status=_text(row.get("status")),
            comments=_text(row.get("comments")),
            forensics={k: row[k] for k in FORENSIC_FIELDS if row.get(k) is not None},
        )

    @property
    def display_name(self) -> str:
        return self.alert_name or self.event_type or "Unknown Alert"

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "client_id": self.client_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "severity": self.severity.value,
            "event_type": self.event_type,
            "alert_name": self.alert_name,
            "host_name": self.host_name,
            "host_ip": self.host_ip,
            "label": self.label.value,
            "label_text": self.label.display,
            "status": self.status,
            "comments": self.comments,
            **self.forensics,
        }


@dataclass
class Vulnerability:
    cve: str = ""
    severity: Severity = Severity.UNSPECIFIED
    description: str = ""

    @classmethod
    def parse_list(cls, payload: Any) -> list["Vulnerability"]:
        """Parse the JSON vulnerabilities column. Non-list payloads and
        non-object entries are dropped."""
        if not isinstance(payload, list):
            return []
        vulns = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            vulns.append(cls(
                cve=_text(item.get("cve")),
                severity=Severity.parse(item.get("severity")),
                description=_text(item.get("description")),
            ))
        return vulns


@dataclass
class Asset:
    id: str
    name: str
    ip_address: str = ""
    status: AssetStatus = AssetStatus.UNKNOWN
    client_id: str = ""
    vulnerabilities: list[Vulnerability] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "Asset":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")),
            ip_address=_text(row.get("ip_address")),
            status=AssetStatus.parse(row.get("status")),
            client_id=_text(row.get("client_id")),
            vulnerabilities=Vulnerability.parse_list(row.get("vulnerabilities")),
        )

    @property
    def is_vulnerable(self) -> bool:
        return len(self.vulnerabilities) > 0

    def count_vulns(self, *severities: Severity) -> int:
        return sum(1 for v in self.vulnerabilities if v.severity in severities)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "name": self.name,
            "ip_address": self.ip_address,
            "status": self.status.value,
            "vulnerabilities": [
                {"cve": v.cve, "severity": v.severity.value, "description": v.description}
                for v in self.vulnerabilities
            ],
        }


@dataclass
class ClientSettings:
    alert_threshold: Severity = Severity.MEDIUM
    auto_email: bool = False
    extra: dict = field(default_factory=dict)

    @classmethod
    def parse(cls, payload: Any) -> "ClientSettings":
        if not isinstance(payload, dict):
            return cls()
        threshold = Severity.parse(payload.get("alert_threshold"))
        if threshold == Severity.UNSPECIFIED:
            threshold = Severity.MEDIUM
        auto_email = payload.get("auto_email")
        return cls(
            alert_threshold=threshold,
            auto_email=auto_email if isinstance(auto_email, bool) else False,
            extra={k: v for k, v in payload.items() if k not in ("alert_threshold", "auto_email")},
        )

    def to_dict(self) -> dict:
        return {
            **self.extra,
            "alert_threshold": self.alert_threshold.value,
            "auto_email": self.auto_email,
        }


@dataclass
class Client:
    """A tenant organization."""

    id: str
    name: str
    email: str = ""
    settings: ClientSettings = field(default_factory=ClientSettings)

    @classmethod
    def from_row(cls, row: dict) -> "Client":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")),
            email=_text(row.get("email")),
            settings=ClientSettings.parse(row.get("settings")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "settings": self.settings.to_dict(),
        }
