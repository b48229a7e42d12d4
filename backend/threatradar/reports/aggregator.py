"""
ThreatRadar - Report Aggregator
Computes a client's security report over a time window from raw events
and the asset inventory.

  Risk score   = min(100, round((critical*10 + high*5 + medium*2) / max(1, total) * 100))
  Top events   = critical/high in window, newest first, first N
  Vuln assets  = assets with any vulnerability (not window-filtered),
                 most critical vulnerabilities first, first N

The result is built fresh on every call and never persisted.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from threatradar.domain import (
    SEVERITY_BUCKETS, Asset, AssetStatus, Event, Severity, parse_timestamp,
)
from threatradar.errors import InvalidWindow
from threatradar.reports.recommendations import report_recommendations
from threatradar.reports.telemetry import StaticTelemetry, TelemetrySource

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10


def js_round(value: float) -> int:
    """Round half up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA MODEL
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ReportWindow:
    """Inclusive reporting interval. Either endpoint may be unset."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        self.start = parse_timestamp(self.start)
        self.end = parse_timestamp(self.end)

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def require(self) -> "ReportWindow":
        if not self.is_complete:
            raise InvalidWindow()
        return self

    def contains(self, ts: Optional[datetime]) -> bool:
        return ts is not None and self.start <= ts <= self.end

    @property
    def label(self) -> str:
        """'Mar 01, 2025 - Mar 31, 2025'"""
        if not self.is_complete:
            return ""
        return f"{self.start.strftime('%b %d, %Y')} - {self.end.strftime('%b %d, %Y')}"


@dataclass
class ExecutiveSummary:
    total_events: int = 0
    critical_alerts: int = 0
    high_alerts: int = 0
    assets_monitored: int = 0
    risk_score: int = 0


@dataclass
class AssetStatusSummary:
    total: int = 0
    online: int = 0
    offline: int = 0
    vulnerable: int = 0


@dataclass
class TopEvent:
    event_id: str
    event_type: str
    severity: Severity
    timestamp: datetime
    host_name: str
    alert_name: str

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "event_type": self.event_type,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "host_name": self.host_name,
            "alert_name": self.alert_name,
        }


@dataclass
class VulnerableAsset:
    asset_name: str
    vulnerability_count: int
    critical_vulns: int

    def to_dict(self) -> dict:
        return {
            "asset_name": self.asset_name,
            "vulnerability_count": self.vulnerability_count,
            "critical_vulns": self.critical_vulns,
        }


@dataclass
class ComplianceMetrics:
    events_processed: int = 0
    avg_response_time: Optional[float] = None
    system_uptime: Optional[float] = None


@dataclass
class ReportData:
    """Everything a report rendition needs."""
    window: ReportWindow
    generated_at: datetime
    executive_summary: ExecutiveSummary = field(default_factory=ExecutiveSummary)
    threat_overview: dict[str, int] = field(
        default_factory=lambda: {s.value: 0 for s in SEVERITY_BUCKETS}
    )
    asset_status: AssetStatusSummary = field(default_factory=AssetStatusSummary)
    top_events: list[TopEvent] = field(default_factory=list)
    vulnerability_summary: list[VulnerableAsset] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    compliance_metrics: ComplianceMetrics = field(default_factory=ComplianceMetrics)

    def severity_percentage(self, severity: str) -> int:
        count = self.threat_overview.get(severity, 0)
        return js_round(count / max(1, self.executive_summary.total_events) * 100)

    def to_dict(self) -> dict:
        """Payload for the tabbed report view (overview, events, assets, recommendations)."""
        es = self.executive_summary
        cm = self.compliance_metrics
        return {
            "period": {
                "start": self.window.start.isoformat(),
                "end": self.window.end.isoformat(),
                "label": self.window.label,
            },
            "generated_at": self.generated_at.isoformat(),
            "executive_summary": {
                "total_events": es.total_events,
                "critical_alerts": es.critical_alerts,
                "high_alerts": es.high_alerts,
                "assets_monitored": es.assets_monitored,
                "risk_score": es.risk_score,
            },
            "threat_overview": dict(self.threat_overview),
            "asset_status": {
                "total": self.asset_status.total,
                "online": self.asset_status.online,
                "offline": self.asset_status.offline,
                "vulnerable": self.asset_status.vulnerable,
            },
            "top_events": [e.to_dict() for e in self.top_events],
            "vulnerability_summary": [v.to_dict() for v in self.vulnerability_summary],
            "recommendations": list(self.recommendations),
            "compliance_metrics": {
                "events_processed": cm.events_processed,
                "avg_response_time": cm.avg_response_time,
                "system_uptime": cm.system_uptime,
            },
        }


# ═══════════════════════════════════════════════════════════════════════════════
# AGGREGATOR
# ═══════════════════════════════════════════════════════════════════════════════

class ReportAggregator:
    """Builds ReportData from events and assets."""

    def __init__(
        self,
        telemetry: Optional[TelemetrySource] = None,
        top_n: int = DEFAULT_TOP_N,
        recommendation_limit: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.telemetry = telemetry or StaticTelemetry.from_settings()
        self.top_n = top_n
        self.recommendation_limit = recommendation_limit
        self.clock = clock

    def aggregate(
        self, events: Iterable[Event], assets: Iterable[Asset], window: ReportWindow,
    ) -> ReportData:
        window.require()
        assets = list(assets)
        filtered = [e for e in events if window.contains(e.timestamp)]

        data = ReportData(window=window, generated_at=self.clock())

        # Severity histogram (unspecified counts toward total only)
        for e in filtered:
            if e.severity.value in data.threat_overview:
                data.threat_overview[e.severity.value] += 1

        total = len(filtered)
        critical = data.threat_overview[Severity.CRITICAL.value]
        high = data.threat_overview[Severity.HIGH.value]
        medium = data.threat_overview[Severity.MEDIUM.value]
        risk = js_round((critical * 10 + high * 5 + medium * 2) / max(1, total) * 100)

        data.executive_summary = ExecutiveSummary(
            total_events=total,
            critical_alerts=critical,
            high_alerts=high,
            assets_monitored=len(assets),
            risk_score=min(100, risk),
        )

        vulnerable = [a for a in assets if a.is_vulnerable]
        offline = sum(1 for a in assets if a.status == AssetStatus.OFFLINE)
        data.asset_status = AssetStatusSummary(
            total=len(assets),
            online=sum(1 for a in assets if a.status == AssetStatus.ONLINE),
            offline=offline,
            vulnerable=len(vulnerable),
        )

        severe = [e for e in filtered if e.severity in (Severity.CRITICAL, Severity.HIGH)]
        severe.sort(key=lambda e: e.timestamp, reverse=True)
        data.top_events = [
            TopEvent(
                event_id=e.event_id,
                event_type=e.event_type or "Unknown",
                severity=e.severity,
                timestamp=e.timestamp,
                host_name=e.host_name or "Unknown",
                alert_name=e.display_name,
            )
            for e in severe[:self.top_n]
        ]

        ranked = sorted(vulnerable, key=lambda a: a.count_vulns(Severity.CRITICAL), reverse=True)
        data.vulnerability_summary = [
            VulnerableAsset(
                asset_name=a.name,
                vulnerability_count=len(a.vulnerabilities),
                critical_vulns=a.count_vulns(Severity.CRITICAL),
            )
            for a in ranked[:self.top_n]
        ]

        data.recommendations = report_recommendations(
            critical=critical,
            high=high,
            vulnerable_assets=len(vulnerable),
            offline_assets=offline,
            limit=self.recommendation_limit,
        )

        data.compliance_metrics = ComplianceMetrics(
            events_processed=total,
            avg_response_time=self.telemetry.avg_response_time(),
            system_uptime=self.telemetry.system_uptime(),
        )

        logger.debug(
            f"Aggregated {total} events / {len(assets)} assets for {window.label} "
            f"(risk={data.executive_summary.risk_score})"
        )
        return data


def aggregate(
    events: Iterable[Event],
    assets: Iterable[Asset],
    window: ReportWindow,
    telemetry: Optional[TelemetrySource] = None,
) -> ReportData:
    """Convenience wrapper around ReportAggregator with default settings."""
    return ReportAggregator(telemetry=telemetry).aggregate(events, assets, window)
