"""Request pacing and retry policy for the mentions API.

Twitter publishes limits as N requests per 15-minute window and reports
the window reset in `x-rate-limit-reset` (epoch seconds) on every response.
"""

from __future__ import annotations

import time
import logging
from threading import Lock
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket sized to one rate-limit window.

    Starts full, so a session can spend a whole window up front, then
    refills at `requests_per_window / window_seconds`.
    """

    def __init__(self, requests_per_window: int = 180, window_seconds: float = 900.0):
        if requests_per_window <= 0 or window_seconds <= 0:
            raise ValueError("requests_per_window and window_seconds must be positive")

        self.capacity = float(requests_per_window)
        self.refill_per_second = requests_per_window / window_seconds
        self._tokens = self.capacity
        self._last_refill = time.monotonic()
        self._lock = Lock()

    def wait(self) -> float:
        """Block until a request may be sent; returns seconds slept."""
        slept = 0.0
        while True:
            with self._lock:
                now = time.monotonic()
                self._tokens = min(
                    self.capacity,
                    self._tokens + (now - self._last_refill) * self.refill_per_second,
                )
                self._last_refill = now
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return slept
                delay = (1.0 - self._tokens) / self.refill_per_second

            logger.debug(f"Mentions request budget spent, waiting {delay:.1f}s")
            time.sleep(delay)
            slept += delay


class RetryConfig:
    """When and how long to back off between mentions requests."""

    def __init__(
        self,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 60.0,
        retry_on_status: tuple = (429, 500, 502, 503, 504),
    ):
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.retry_on_status = retry_on_status

    def should_retry(self, status_code: int) -> bool:
        return status_code in self.retry_on_status

    def get_delay(self, attempt: int) -> float:
        """Exponential backoff for attempt number (0-indexed)."""
        return min(self.backoff_base * (2 ** attempt), self.backoff_max)

    def rate_limit_delay(
        self,
        headers: Mapping[str, str],
        attempt: int,
        now: Optional[float] = None,
    ) -> float:
        """Delay after a 429: until the window resets, capped at backoff_max."""
        reset = headers.get("x-rate-limit-reset")
        if not reset:
            return self.get_delay(attempt)
        try:
            wait = float(reset) - (time.time() if now is None else now)
        except ValueError:
            return self.get_delay(attempt)
        return max(0.0, min(wait, self.backoff_max))
