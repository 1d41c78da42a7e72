"""Usage counters for ``maxUses`` / ``maxUsesPerHour`` constraints.

Usage state is owned by the calling service, not by this library. The
verifier only reads it through a :class:`UsageCounter`; it makes no
atomicity guarantee, so the owning service must serialise increments itself
(atomic counter, transactional store) to avoid races between concurrent
identical requests.
"""
from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from typing import Callable, Optional, Protocol, runtime_checkable

HOUR_SECONDS: int = 3600


@runtime_checkable
class UsageCounter(Protocol):
    """Black-box usage lookup supplied by the calling service."""

    def count(self, delegation_id: str, window_seconds: Optional[int] = None) -> Optional[int]:
        """Return uses of *delegation_id* in the trailing window.

        ``window_seconds=None`` means lifetime. The count must include the
        request being checked. Return ``None`` when no count is known.
        """
        ...


class InMemoryUsageCounter:
    """Process-local usage counter keyed by delegation id.

    Thread-safe. Intended for tests and single-process services. Lifetime
    totals are plain integers; individual timestamps are kept only for the
    trailing *retention_seconds*, so memory stays bounded by the recent
    request rate.

    Parameters
    ----------
    clock:
        Returns the current Unix time in seconds. Defaults to ``time.time``.
    retention_seconds:
        Longest window :meth:`count` can answer. Wider windows return
        ``None`` (unknown), which the verifier treats per its usage policy.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        retention_seconds: int = HOUR_SECONDS,
    ) -> None:
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")
        self._clock = clock
        self._retention = retention_seconds
        self._totals: dict[str, int] = defaultdict(int)
        self._recent: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def record(self, delegation_id: str, at: Optional[float] = None) -> int:
        """Record one use and return the new lifetime count."""
        now = self._clock()
        timestamp = now if at is None else at
        with self._lock:
            self._totals[delegation_id] += 1
            recent = self._recent[delegation_id]
            if timestamp > now - self._retention:
                recent.append(timestamp)
            self._prune(recent, now)
            return self._totals[delegation_id]

    def count(self, delegation_id: str, window_seconds: Optional[int] = None) -> Optional[int]:
        with self._lock:
            if window_seconds is None:
                return self._totals.get(delegation_id, 0)
            if window_seconds > self._retention:
                return None
            recent = self._recent.get(delegation_id)
            if not recent:
                return 0
            now = self._clock()
            self._prune(recent, now)
            cutoff = now - window_seconds
            return sum(1 for timestamp in recent if timestamp > cutoff)

    def reset(self, delegation_id: str) -> None:
        with self._lock:
            self._totals.pop(delegation_id, None)
            self._recent.pop(delegation_id, None)

    def _prune(self, recent: deque[float], now: float) -> None:
        # Pops from the left only; out-of-order stragglers are filtered in count().
        cutoff = now - self._retention
        while recent and recent[0] <= cutoff:
            recent.popleft()


__all__ = ["HOUR_SECONDS", "InMemoryUsageCounter", "UsageCounter"]
