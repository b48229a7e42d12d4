"""
ThreatRadar - Resilience Layer
Retry with exponential backoff and a circuit breaker for remote
generation calls.

Usage:
    from threatradar.resilience import retry_with_backoff, CircuitBreaker
    reply = await retry_with_backoff(max_retries=2)(provider.chat)(system, history, message)
"""

import asyncio
import functools
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """CLOSED → OPEN → HALF_OPEN circuit breaker."""

    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 60.0, name: str = "remote"):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._state = "CLOSED"

    @property
    def state(self) -> str:
        if self._state == "OPEN" and self._last_failure_time and \
           (time.monotonic() - self._last_failure_time) > self.recovery_timeout:
            self._state = "HALF_OPEN"
        return self._state

    def record_success(self):
        self._failure_count = 0
        self._state = "CLOSED"

    def record_failure(self):
        self._failure_count += 1
        self._last_failure_time = time.monotonic()
        if self._failure_count >= self.failure_threshold:
            self._state = "OPEN"
            logger.warning(f"Circuit breaker '{self.name}' OPEN after {self._failure_count} failures")

    def is_available(self) -> bool:
        return self.state != "OPEN"


def retry_with_backoff(max_retries=2, base_delay=1.0, max_delay=8.0, retry_on=(Exception,)):
    """Decorator: retry async functions with exponential backoff + retry-after header respect."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            last_exc = None
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    last_exc = e
                    if attempt == max_retries:
                        logger.error(f"{func.__name__} failed after {max_retries+1} attempts: {e}")
                        raise
                    delay = min(base_delay * (2 ** attempt), max_delay)
                    resp = getattr(e, "response", None)
                    if resp is not None and hasattr(resp, "headers"):
                        ra = resp.headers.get("retry-after")
                        if ra:
                            try:
                                delay = min(max(delay, float(ra)), max_delay)
                            except (ValueError, TypeError):
                                pass
                    logger.warning(f"{func.__name__} attempt {attempt+1}/{max_retries+1} failed. Retrying in {delay:.1f}s")
                    await asyncio.sleep(delay)
            raise last_exc
        return wrapper
    return decorator
