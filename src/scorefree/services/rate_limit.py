"""Token-bucket throttling for outbound catalog requests."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from rich.console import Console

from scorefree.config.settings import RateLimitConfig, ServiceRateLimit

CATALOG_SERVICE = "youtube_api"


@dataclass(slots=True)
class RateLimiter:
    """Token bucket with exponential backoff for rate-limited operations."""

    requests_per_minute: int
    burst: int
    backoff_base_seconds: float = 0.5
    max_backoff_seconds: float = 5.0
    clock: Callable[[], float] = time.monotonic
    _tokens: float = field(init=False, repr=False)
    _last_refill: float = field(init=False, repr=False)
    _refill_rate: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._tokens = float(self.burst)
        self._last_refill = self.clock()
        self._refill_rate = self.requests_per_minute / 60.0 if self.requests_per_minute else 0.0

    @property
    def available_tokens(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self) -> None:
        """Wait until a token is available according to the configured rate limit."""

        if self.requests_per_minute <= 0:
            return

        attempt = 0
        while True:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return

            wait_time = (1.0 - self._tokens) / self._refill_rate if self._refill_rate else self.backoff_base_seconds
            backoff = min(self.max_backoff_seconds, self.backoff_base_seconds * (2**attempt))
            await asyncio.sleep(min(max(wait_time, backoff), self.max_backoff_seconds))
            attempt += 1

    def _refill(self) -> None:
        """Replenish available tokens based on elapsed time since the last refill."""

        now = self.clock()
        elapsed = now - self._last_refill
        if elapsed <= 0 or self._refill_rate == 0:
            return

        self._tokens = min(float(self.burst), self._tokens + elapsed * self._refill_rate)
        self._last_refill = now


def create_limiter(service_name: str, config: ServiceRateLimit, *, console: Optional[Console] = None) -> RateLimiter:
    """Build a :class:`RateLimiter` from a single service configuration.

    Hourly and daily budgets are converted to their per-minute equivalent when no
    per-minute budget is configured.
    """

    requests_per_minute = config.requests_per_minute
    if requests_per_minute is None and config.requests_per_hour:
        requests_per_minute = max(1, config.requests_per_hour // 60)
    if requests_per_minute is None and config.requests_per_day:
        requests_per_minute = max(1, config.requests_per_day // (60 * 24))
    requests_per_minute = requests_per_minute or 60

    burst = config.burst or requests_per_minute
    if console is not None:
        console.log(f"{service_name}: throttled to {requests_per_minute} requests/minute (burst {burst}).")
    return RateLimiter(requests_per_minute=requests_per_minute, burst=burst)


def load_rate_limits(configuration: RateLimitConfig, *, console: Optional[Console] = None) -> Dict[str, RateLimiter]:
    """Create rate limiter instances from configuration."""

    return {
        service_name: create_limiter(service_name, config, console=console)
        for service_name, config in configuration.services.items()
    }


__all__ = ["CATALOG_SERVICE", "RateLimiter", "create_limiter", "load_rate_limits"]
