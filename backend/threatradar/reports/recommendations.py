"""
ThreatRadar - Recommendation Rules
Two rule sets with distinct wording: the report variant (PDF + report view)
and the assistant variant (chat fallback). Both are ordered: conditional
rules first, then a fixed tail. Both pass through cap().
"""

from typing import Iterable, Optional

REPORT_TAIL = (
    "Regular security awareness training for all users",
    "Implement multi-factor authentication across all systems",
    "Conduct regular penetration testing",
    "Update incident response procedures",
)

ASSISTANT_TAIL = (
    "Enable multi-factor authentication on all administrative accounts",
    "Implement continuous security monitoring and alerting",
    "Conduct security awareness training for all users",
)


def cap(items: Iterable[str], limit: Optional[int] = None) -> list[str]:
    """Truncate to `limit` entries, preserving order. None keeps all."""
    items = list(items)
    if limit is None:
        return items
    return items[:max(0, limit)]


def report_recommendations(
    critical: int,
    high: int,
    vulnerable_assets: int,
    offline_assets: int,
    limit: Optional[int] = None,
) -> list[str]:
    recs = []
    if critical > 0:
        recs.append("Immediate attention required for critical security alerts")
    if vulnerable_assets > 0:
        recs.append("Schedule vulnerability patching for affected assets")
    if offline_assets > 0:
        recs.append("Investigate and restore offline assets")
    if high > 5:
        recs.append("Review and enhance security monitoring rules")
    recs.extend(REPORT_TAIL)
    return cap(recs, limit)


def assistant_recommendations(
    critical_or_high: int,
    vulnerable_assets: int,
    limit: Optional[int] = 5,
) -> list[str]:
    recs = []
    if critical_or_high > 0:
        recs.append("Investigate and respond to all critical/high severity alerts within 1 hour")
        recs.append("Implement network segmentation to contain potential threats")
    if vulnerable_assets > 0:
        recs.append(f"Patch vulnerabilities on {vulnerable_assets} affected systems")
        recs.append("Conduct vulnerability assessment on all critical assets monthly")
    recs.extend(ASSISTANT_TAIL)
    return cap(recs, limit)
