"""
ThreatRadar - Chat Context Builder
Condenses a client's recent events and assets into the bounded text block
that is appended to the assistant system prompt.
"""

from threatradar.domain import Asset, AssetStatus, Event, Severity

SEVERE = (Severity.CRITICAL, Severity.HIGH)


def _when(event: Event) -> str:
    return event.timestamp.strftime("%Y-%m-%d %H:%M UTC") if event.timestamp else "unknown time"


def most_recent(events: list[Event], limit: int) -> list[Event]:
    """Newest first. Events without a timestamp sort last."""
    dated = [e for e in events if e.timestamp is not None]
    undated = [e for e in events if e.timestamp is None]
    dated.sort(key=lambda e: e.timestamp, reverse=True)
    return (dated + undated)[:limit]


def build_context(
    events: list[Event],
    assets: list[Asset],
    event_limit: int = 5,
    asset_limit: int = 5,
) -> str:
    severe = [e for e in events if e.severity in SEVERE]
    lines = [
        f"Recent security events: {len(events)}",
        f"Critical/high severity events: {len(severe)}",
        f"Monitored assets: {len(assets)}",
    ]

    recent = most_recent(events, event_limit)
    if recent:
        lines += ["", "Most recent events:"]
        for e in recent:
            entry = (
                f"- {e.display_name} | severity: {e.severity.value} | host: {e.host_name or 'Unknown'} "
                f"| time: {_when(e)} | status: {e.status or 'n/a'}"
            )
            if e.comments:
                entry += f" | comment: {e.comments}"
            lines.append(entry)

    shown = assets[:asset_limit]
    if shown:
        lines += ["", "Assets:"]
        for a in shown:
            lines.append(
                f"- {a.name} ({a.ip_address or 'no IP'}) | status: {a.status.value} "
                f"| vulnerabilities: {len(a.vulnerabilities)}"
            )

    high_risk = [a.name for a in shown if a.count_vulns(*SEVERE) > 0]
    if high_risk:
        lines += ["", f"High-risk assets (critical/high vulnerabilities): {', '.join(high_risk)}"]

    offline = [a.name for a in shown if a.status == AssetStatus.OFFLINE]
    if offline:
        lines.append(f"Offline assets: {', '.join(offline)}")

    return "\n".join(lines)
