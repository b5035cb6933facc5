"""
In-process fixed-window rate limiting.

One RateLimiter is created per process (see ``create_application``) and shared
by every endpoint. State lives in memory only: it is best-effort throttling
for a single instance and resets whenever the process restarts.
"""

import heapq
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import structlog

logger = structlog.get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float  # epoch milliseconds


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: Optional[int] = None
    retry_after_seconds: Optional[int] = None
    policy: Optional[str] = None


@dataclass(frozen=True)
class RateLimitTier:
    name: str
    max_requests: int
    window_ms: int


def get_client_identifier(headers: Mapping[str, str], client_host: Optional[str] = None) -> str:
    """Derive the rate-limit identity of a caller.

    First value of X-Forwarded-For, then X-Real-IP, then the peer address.
    """
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    if client_host:
        return client_host

    return UNKNOWN_CLIENT


class RateLimiter:
    """Fixed-window request counter keyed by client and window size."""

    def __init__(
        self,
        sweep_interval: int = 100,
        max_entries: int = 10000,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.sweep_interval = max(1, sweep_interval)
        self.max_entries = max(1, max_entries)
        self._clock = clock or (lambda: time.time() * 1000)
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._calls = 0

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def build_key(client_key: str, window_ms: int) -> str:
        return f"{client_key}:{window_ms}"

    def check(self, client_key: str, window_ms: int, max_requests: int) -> RateLimitDecision:
        key = self.build_key(client_key, window_ms)

        with self._lock:
            now = self._clock()
            self._calls += 1
            if self._calls % self.sweep_interval == 0:
                self._sweep(now)

            entry = self._entries.get(key)
            if entry is None or now > entry.reset_at:
                if entry is None and len(self._entries) >= self.max_entries:
                    self._make_room(now)
                self._entries[key] = RateLimitEntry(count=1, reset_at=now + window_ms)
                return RateLimitDecision(allowed=True, remaining=max(0, max_requests - 1))

            if entry.count < max_requests:
                entry.count += 1
                return RateLimitDecision(allowed=True, remaining=max_requests - entry.count)

            retry_after = max(1, math.ceil((entry.reset_at - now) / 1000))
            return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

    def check_policy(self, scope: str, client: str, tiers: Sequence[RateLimitTier]) -> RateLimitDecision:
        """Apply tiers in order; the first denial wins and names the policy."""
        remaining: List[int] = []
        for tier in tiers:
            decision = self.check(f"{scope}:{client}", tier.window_ms, tier.max_requests)
            if not decision.allowed:
                logger.warning(
                    "rate_limit_exceeded",
                    scope=scope,
                    client=client,
                    policy=tier.name,
                    retry_after=decision.retry_after_seconds,
                )
                return RateLimitDecision(
                    allowed=False,
                    retry_after_seconds=decision.retry_after_seconds,
                    policy=tier.name,
                )
            if decision.remaining is not None:
                remaining.append(decision.remaining)

        return RateLimitDecision(allowed=True, remaining=min(remaining) if remaining else None)

    def sweep(self) -> int:
        with self._lock:
            return self._sweep(self._clock())

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()
            self._calls = 0

    def _make_room(self, now: float) -> None:
        # Leaves a tenth of the store free; live entries nearest their reset go first.
        target = self.max_entries - max(1, self.max_entries // 10)
        self._sweep(now)
        excess = len(self._entries) - target
        if excess <= 0:
            return
        oldest = heapq.nsmallest(excess, self._entries.items(), key=lambda item: item[1].reset_at)
        for key, _ in oldest:
            del self._entries[key]
        logger.info("rate_limit_store_full", evicted=excess, max_entries=self.max_entries)

    def _sweep(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.reset_at < now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("rate_limit_sweep", evicted=len(expired), remaining=len(self._entries))
        return len(expired)
