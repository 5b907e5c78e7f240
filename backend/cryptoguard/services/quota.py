"""Per-endpoint daily quotas for the paid AI provider.

The window resets lazily: every read or write first checks whether the
window has elapsed and, if so, zeroes the counter and restarts the window at
"now". There is no timer, so an idle process keeps its old window until the
next call touches it.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from cryptoguard.core.config import Settings
from cryptoguard.core.logging import get_logger

logger = get_logger("quota")

Clock = Callable[[], float]


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class QuotaSnapshot:
    name: str
    calls_used: int
    calls_remaining: int
    max_calls: int
    window_started_at: float
    window_seconds: float

    @property
    def can_make_call(self) -> bool:
        return self.calls_remaining > 0

    @property
    def next_reset_at(self) -> float:
        return self.window_started_at + self.window_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiCallsUsed": self.calls_used,
            "apiCallsRemaining": self.calls_remaining,
            "maxCallsPerWindow": self.max_calls,
            "canMakeApiCall": self.can_make_call,
            "lastResetTime": _iso(self.window_started_at),
            "nextResetTime": _iso(self.next_reset_at),
        }


class QuotaTracker:
    def __init__(
        self,
        name: str,
        max_calls: int,
        window_seconds: float = 24 * 60 * 60,
        clock: Clock = time.time,
    ) -> None:
        if max_calls < 0:
            raise ValueError("max_calls must be >= 0")
        self.name = name
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._calls_made = 0
        self._window_start = clock()

    def _reset_if_needed(self) -> None:
        # Caller must hold self._lock.
        now = self._clock()
        if now - self._window_start > self.window_seconds:
            self._calls_made = 0
            self._window_start = now
            logger.info("🔄 Daily API limit reset for %s", self.name)

    def can_make_call(self) -> bool:
        with self._lock:
            self._reset_if_needed()
            return self._calls_made < self.max_calls

    def record_call(self) -> None:
        with self._lock:
            self._reset_if_needed()
            self._calls_made += 1
            logger.info("📊 %s API calls this window: %s/%s", self.name, self._calls_made, self.max_calls)

    def remaining(self) -> int:
        with self._lock:
            self._reset_if_needed()
            return max(0, self.max_calls - self._calls_made)

    def try_acquire(self) -> bool:
        """Atomically check the quota and count one call if any is left."""
        with self._lock:
            self._reset_if_needed()
            if self._calls_made >= self.max_calls:
                return False
            self._calls_made += 1
            logger.info("📊 %s API calls this window: %s/%s", self.name, self._calls_made, self.max_calls)
            return True

    def exhaust(self) -> None:
        """Mark the window as used up, e.g. after the provider answered 429."""
        with self._lock:
            self._reset_if_needed()
            self._calls_made = max(self._calls_made, self.max_calls)
        logger.warning("⚠️ %s quota forced to exhausted state", self.name)

    def snapshot(self) -> QuotaSnapshot:
        with self._lock:
            self._reset_if_needed()
            return QuotaSnapshot(
                name=self.name,
                calls_used=self._calls_made,
                calls_remaining=max(0, self.max_calls - self._calls_made),
                max_calls=self.max_calls,
                window_started_at=self._window_start,
                window_seconds=self.window_seconds,
            )


SMART_TRANSLATOR = "smart_translator"
CRYPTO_QUERY = "crypto_query"
DEFI_ANALYSIS = "defi_analysis"
TRANSACTION_ANALYSIS = "transaction_analysis"
SECURITY_ANALYSIS = "ai_security_analysis"


class QuotaRegistry:
    """One tracker per AI-backed endpoint, created once per process."""

    def __init__(self, trackers: Dict[str, QuotaTracker]) -> None:
        self._trackers = dict(trackers)

    @classmethod
    def from_settings(cls, config: Settings, clock: Optional[Clock] = None) -> "QuotaRegistry":
        clock = clock or time.time
        window = config.quota_window_seconds
        limits = {
            SMART_TRANSLATOR: config.translator_max_daily_calls,
            CRYPTO_QUERY: config.query_max_daily_calls,
            DEFI_ANALYSIS: config.defi_max_daily_calls,
            TRANSACTION_ANALYSIS: config.transaction_max_daily_calls,
            SECURITY_ANALYSIS: config.security_analysis_max_daily_calls,
        }
        return cls(
            {name: QuotaTracker(name, limit, window, clock) for name, limit in limits.items()}
        )

    def get(self, name: str) -> QuotaTracker:
        return self._trackers[name]

    def snapshots(self) -> Dict[str, QuotaSnapshot]:
        return {name: tracker.snapshot() for name, tracker in self._trackers.items()}
