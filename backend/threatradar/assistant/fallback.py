"""
ThreatRadar - Local Fallback Responder
Keyword-routed replies built only from the fetched events and assets.
Used whenever remote generation is unavailable. Deterministic.

Routing (first match wins, case-insensitive substring):
  event | alert | incident            → event summary
  asset | system | vulnerability      → asset summary
  classify | analyze | what is this   → classification of the most recent event
  recommend | suggest | advice        → assistant recommendations (max 5)
  anything else                       → capability menu
"""

from threatradar.assistant.context import SEVERE, most_recent
from threatradar.domain import Asset, AssetStatus, Event, Label, Severity
from threatradar.reports.recommendations import assistant_recommendations

EVENT_KEYWORDS = ("event", "alert", "incident")
ASSET_KEYWORDS = ("asset", "system", "vulnerability")
CLASSIFY_KEYWORDS = ("classify", "analyze", "what is this")
RECOMMEND_KEYWORDS = ("recommend", "suggest", "advice")

NO_EVENTS = (
    "I don't see any recent security events for this client. This could indicate "
    "a quiet period or that events are being processed normally."
)
NO_ASSETS = (
    "No assets are currently registered for monitoring. I recommend adding your "
    "critical systems to the asset inventory."
)
NOTHING_TO_CLASSIFY = (
    "No recent events available for classification. Please ensure event ingestion "
    "is working properly."
)
CAPABILITIES = """I'm here to help with security analysis and recommendations. I can assist with:

• Analyzing security events and incidents
• Reviewing asset vulnerabilities and status
• Classifying security events (True/False positives)
• Providing security recommendations
• Explaining security terminology and threats

What specific security concern would you like me to help you with?"""


def _matches(text: str, keywords: tuple) -> bool:
    return any(k in text for k in keywords)


# ============================================================
# Classification
# ============================================================

def classify_event(event: Event) -> str:
    alert = event.alert_name.lower()
    etype = event.event_type.lower()

    if event.severity in SEVERE:
        if "malware" in alert or "trojan" in alert or "malware" in etype:
            return "True Positive - Malware Detection"
        if "intrusion" in alert or "attack" in alert or "intrusion" in etype:
            return "True Positive - Intrusion Attempt"
        return "True Positive - Security Threat"

    if event.severity in (Severity.LOW, Severity.INFO):
        return "True Negative - Normal Activity"

    return "Requires Investigation"


def classification_explanation(classification: str, event: Event) -> str:
    if "True Positive" in classification:
        return (
            "This event shows indicators of malicious activity. Immediate investigation "
            "and containment measures should be implemented. Check related events on "
            f"{event.host_name or 'the affected host'} for additional IOCs."
        )
    if "True Negative" in classification:
        return (
            "This appears to be normal system activity with low security impact. "
            "Continue monitoring but no immediate action required."
        )
    return (
        "This event requires manual investigation to determine if it represents a "
        "genuine security threat or a false positive."
    )


# ============================================================
# Replies
# ============================================================

def _events_reply(events: list[Event]) -> str:
    if not events:
        return NO_EVENTS

    severe = [e for e in events if e.severity in SEVERE]
    types = list(dict.fromkeys(e.event_type for e in events if e.event_type))
    concerns = "\n".join(
        f"• {e.display_name} on {e.host_name or 'Unknown'} - {e.severity.value} severity"
        for e in severe[:3]
    )
    action = (
        "Prioritize investigation of critical events and implement containment measures."
        if severe else "Continue monitoring current security posture."
    )
    return (
        f"Based on recent activity, I found {len(events)} security events. "
        f"{len(severe)} are high/critical severity requiring attention. "
        f"Common event types include: {', '.join(types[:3])}.\n\n"
        f"Key concerns:\n{concerns}\n\n"
        f"Recommendation: {action}"
    )


def _assets_reply(assets: list[Asset]) -> str:
    if not assets:
        return NO_ASSETS

    vulnerable = [a for a in assets if a.is_vulnerable]
    offline = [a for a in assets if a.status == AssetStatus.OFFLINE]
    parts = [
        "Asset Status Summary:",
        f"• Total monitored assets: {len(assets)}",
        f"• Assets with vulnerabilities: {len(vulnerable)}",
        f"• Offline assets: {len(offline)}",
    ]
    if vulnerable:
        parts += ["", "High priority assets needing attention:"]
        parts += [
            f"• {a.name} ({a.ip_address}) - {len(a.vulnerabilities)} vulnerabilities"
            for a in vulnerable[:3]
        ]
    action = (
        "Schedule vulnerability remediation for affected systems."
        if vulnerable else "Current asset security posture is stable."
    )
    parts += ["", f"Recommendation: {action}"]
    return "\n".join(parts)


def _classify_reply(events: list[Event]) -> str:
    latest = most_recent(events, 1)
    if not latest:
        return NOTHING_TO_CLASSIFY
    event = latest[0]
    classification = classify_event(event)
    lines = [
        "Event Classification Analysis:",
        f"Event: {event.display_name}",
        f"Host: {event.host_name or 'Unknown'}",
        f"Classification: {classification}",
    ]
    if event.label != Label.UNCLASSIFIED:
        lines.append(f"Analyst label: {event.label.display}")
    lines += ["", f"Analysis: {classification_explanation(classification, event)}"]
    return "\n".join(lines)


def _recommend_reply(events: list[Event], assets: list[Asset], limit: int) -> str:
    recs = assistant_recommendations(
        critical_or_high=sum(1 for e in events if e.severity in SEVERE),
        vulnerable_assets=sum(1 for a in assets if a.is_vulnerable),
        limit=limit,
    )
    numbered = "\n".join(f"{i}. {rec}" for i, rec in enumerate(recs, 1))
    return (
        f"Security Recommendations:\n\n{numbered}\n\n"
        "These recommendations are based on current threat landscape and your "
        "environment's security posture."
    )


def generate_fallback_response(
    message: str,
    events: list[Event],
    assets: list[Asset],
    recommendation_limit: int = 5,
) -> str:
    text = message.lower()
    if _matches(text, EVENT_KEYWORDS):
        return _events_reply(events)
    if _matches(text, ASSET_KEYWORDS):
        return _assets_reply(assets)
    if _matches(text, CLASSIFY_KEYWORDS):
        return _classify_reply(events)
    if _matches(text, RECOMMEND_KEYWORDS):
        return _recommend_reply(events, assets, recommendation_limit)
    return CAPABILITIES
