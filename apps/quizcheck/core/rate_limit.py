from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    max_per_minute: int
    min_interval_s: float


DEFAULT_POLICIES: dict[str, RateLimitPolicy] = {
    # Exa / Tavily: paid APIs, avoid bursts when several verifications run at once.
    "exa": RateLimitPolicy(max_per_minute=60, min_interval_s=0.5),
    "tavily": RateLimitPolicy(max_per_minute=60, min_interval_s=0.5),
    # Public quiz host: one export at a time is the norm.
    "kahoot": RateLimitPolicy(max_per_minute=30, min_interval_s=1.0),
}


class WebRateLimiter:
    """Best-effort, in-process rate limiter for outbound search/API requests.

    Thread-safe so a bounded verification pool shares one budget per provider.
    """

    def __init__(
        self,
        *,
        policies: dict[str, RateLimitPolicy] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policies = dict(DEFAULT_POLICIES if policies is None else policies)
        self._sleep = sleep
        self._clock = clock
        self._lock = Lock()
        self._next_allowed: dict[str, float] = {}
        self._minute_key: dict[str, int] = {}
        self._minute_count: dict[str, int] = {}

    def policy_for(self, provider: str) -> RateLimitPolicy:
        return self._policies.get(
            provider, RateLimitPolicy(max_per_minute=60, min_interval_s=1.0)
        )

    def wait(self, provider: str, *, policy: RateLimitPolicy | None = None) -> None:
        provider = (provider or "unknown").strip().lower()
        policy = policy or self.policy_for(provider)

        # Reserve the next slot under the lock, then sleep outside it.
        with self._lock:
            now = self._clock()
            minute = int(now // 60)
            if self._minute_key.get(provider) != minute:
                self._minute_key[provider] = minute
                self._minute_count[provider] = 0

            start = max(now, self._next_allowed.get(provider, 0.0))
            self._minute_count[provider] += 1
            if self._minute_count[provider] > policy.max_per_minute:
                # Wait until next minute boundary.
                start = max(start, (minute + 1) * 60.0 + random.uniform(0.05, 0.25))
                self._minute_key[provider] = int(start // 60)
                self._minute_count[provider] = 1
            self._next_allowed[provider] = start + policy.min_interval_s
            sleep_for = start - now

        if sleep_for > 0:
            logger.debug("Rate limiting %s for %.2fs", provider, sleep_for)
            self._sleep(sleep_for)


web_rate_limiter = WebRateLimiter()
