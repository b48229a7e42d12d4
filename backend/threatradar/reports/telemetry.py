"""
ThreatRadar - Operational Telemetry
Source of the response-time and uptime figures shown in the compliance
section of a report. None means the figure is not reported.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from threatradar.config import get_settings


class TelemetrySource(ABC):

    @abstractmethod
    def avg_response_time(self) -> Optional[float]:
        """Mean alert response time in seconds."""
        ...

    @abstractmethod
    def system_uptime(self) -> Optional[float]:
        """Platform uptime as a percentage."""
        ...


@dataclass
class StaticTelemetry(TelemetrySource):
    """Fixed figures, typically from TELEMETRY_* settings."""
    response_time: Optional[float] = None
    uptime: Optional[float] = None

    @classmethod
    def from_settings(cls) -> "StaticTelemetry":
        settings = get_settings()
        return cls(
            response_time=settings.telemetry_avg_response_time,
            uptime=settings.telemetry_system_uptime,
        )

    def avg_response_time(self) -> Optional[float]:
        return self.response_time

    def system_uptime(self) -> Optional[float]:
        return self.uptime
