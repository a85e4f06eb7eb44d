# Fixed-window rate limiting keyed by client address.
# The limiter policy is chosen once at startup (see build_rate_limiter) and
# stored on app.state; routes opt in through the tier dependencies below.

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from app.core.config import Settings
from app.core.errors import RateLimitExceededError

logger = logging.getLogger("app")


@dataclass(frozen=True)
class RateLimitTier:
    name: str
    limit: int
    window_seconds: int


def tiers_from_settings(settings: Settings) -> Dict[str, RateLimitTier]:
    return {
        "auth": RateLimitTier("auth", settings.RATE_LIMIT_AUTH, settings.RATE_LIMIT_AUTH_WINDOW),
        "write": RateLimitTier("write", settings.RATE_LIMIT_WRITE, settings.RATE_LIMIT_WRITE_WINDOW),
        "read": RateLimitTier("read", settings.RATE_LIMIT_READ, settings.RATE_LIMIT_READ_WINDOW),
    }


class FixedWindowRateLimiter:
    """Counts hits per (tier, client) in windows aligned to multiples of the window length."""

    def __init__(self, tiers: Dict[str, RateLimitTier], clock: Callable[[], float] = time.time):
        self.tiers = tiers
        self._clock = clock
        self._lock = threading.Lock()
        self._counters: Dict[Tuple[str, str], Tuple[float, int]] = {}
        # Window each tier was last swept in
        self._current_window: Dict[str, float] = {}

    def _sweep(self, tier_name: str, window_start: float) -> None:
        """Drop the tier's counters left over from earlier windows; caller holds the lock."""
        if self._current_window.get(tier_name) == window_start:
            return
        self._current_window[tier_name] = window_start
        stale = [key for key, (started, _) in self._counters.items() if key[0] == tier_name and started < window_start]
        for key in stale:
            del self._counters[key]

    def hit(self, tier_name: str, client_key: str) -> Optional[int]:
        """Record one request; returns None if allowed, else seconds until the window resets."""
        tier = self.tiers[tier_name]
        now = self._clock()
        window_start = math.floor(now / tier.window_seconds) * tier.window_seconds

        with self._lock:
            self._sweep(tier_name, window_start)
            key = (tier_name, client_key)
            started, count = self._counters.get(key, (window_start, 0))
            if started != window_start:
                started, count = window_start, 0
            count += 1
            self._counters[key] = (started, count)

        if count > tier.limit:
            return max(1, math.ceil(started + tier.window_seconds - now))
        return None

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._current_window.clear()


class NoopRateLimiter:
    """Pass-through policy used when rate limiting is disabled."""

    def hit(self, tier_name: str, client_key: str) -> Optional[int]:
        return None

    def reset(self) -> None:
        pass


def build_rate_limiter(settings: Settings):
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting disabled")
        return NoopRateLimiter()
    return FixedWindowRateLimiter(tiers_from_settings(settings))


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(tier_name: str):
    """Build a dependency enforcing the named tier for the calling client."""

    def dependency(request: Request) -> None:
        limiter = request.app.state.rate_limiter
        retry_after = limiter.hit(tier_name, _client_key(request))
        if retry_after is not None:
            logger.warning(f"Rate limit '{tier_name}' exceeded by {_client_key(request)} on {request.url.path}")
            raise RateLimitExceededError(headers={"Retry-After": str(retry_after)})

    dependency.__name__ = f"{tier_name}_rate_limit"
    return dependency


auth_limiter = rate_limit("auth")
write_limiter = rate_limit("write")
read_limiter = rate_limit("read")
