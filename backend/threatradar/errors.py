"""
ThreatRadar - Error Taxonomy

  InvalidWindow            → report requested without a complete date range (user-correctable)
  UpstreamFetchFailure     → row store unreachable or rejected a query (fatal to the view)
  RemoteGenerationFailure  → LLM call failed (recovered locally by the fallback responder)
  AuthError                → identity provider rejected a request
"""


class ThreatRadarError(Exception):
    """Base class for all ThreatRadar errors."""


class InvalidWindow(ThreatRadarError):
    """Report window is missing one or both endpoints."""

    def __init__(self, message: str = "Please select a valid date range to generate reports"):
        super().__init__(message)


class UpstreamFetchFailure(ThreatRadarError):
    """The row store could not serve a query."""

    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"Failed to fetch {table}: {reason}")


class RemoteGenerationFailure(ThreatRadarError):
    """The remote text-generation call failed (network, status, or payload)."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} generation failed: {reason}")


class AuthError(ThreatRadarError):
    """Identity provider refused the request."""
