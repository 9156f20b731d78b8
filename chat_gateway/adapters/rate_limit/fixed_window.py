"""Fixed-window admission controller.

Each identity gets ``max_requests`` admissions per window. The window starts
on the first request seen from that identity and is replaced wholesale once
it ends; unused quota does not carry over.

Denied requests are not counted, so retrying while blocked never pushes the
reset further away.
"""

from __future__ import annotations

import math
import threading

from chat_gateway.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AbstractCounterStore,
    AdmissionDecision,
    Clock,
    CounterRecord,
    QuotaPolicy,
)
from chat_gateway.adapters.rate_limit.clock import wall_clock_ms
from chat_gateway.adapters.rate_limit.in_memory import InMemoryCounterStore

_DEFAULT_LOCK_STRIPES = 64


class FixedWindowAdmissionController(AbstractAdmissionController):
    """Admission controller enforcing a QuotaPolicy per identity.

    The read-check-increment sequence for one identity runs under a lock
    picked by hashing the identity, so concurrent requests from the same
    caller are serialized while different callers rarely contend.
    """

    def __init__(
        self,
        policy: QuotaPolicy,
        *,
        store: AbstractCounterStore | None = None,
        clock: Clock = wall_clock_ms,
        sweep_interval_ms: int | None = None,
        lock_stripes: int = _DEFAULT_LOCK_STRIPES,
    ) -> None:
        """Initialize the controller.

        Args:
            policy: Window length and per-window request budget.
            store: Counter storage; a fresh in-memory store when omitted.
            clock: Time source returning integer milliseconds.
            sweep_interval_ms: Minimum spacing between sweeps run from
                ``decide``. Defaults to one window; ``0`` sweeps on every call.
            lock_stripes: Number of per-identity locks.
        """
        if lock_stripes < 1:
            raise ValueError("lock_stripes must be >= 1")

        self.policy = policy
        self.store = store if store is not None else InMemoryCounterStore()
        self._clock = clock
        self._sweep_interval_ms = (
            policy.window_ms if sweep_interval_ms is None else sweep_interval_ms
        )
        self._locks = [threading.Lock() for _ in range(lock_stripes)]
        self._sweep_lock = threading.Lock()
        self._last_sweep_at: int | None = None

    def _lock_for(self, identity: str) -> threading.Lock:
        return self._locks[hash(identity) % len(self._locks)]

    def _maybe_sweep(self, now: int) -> None:
        """Sweep from the request path when the interval has elapsed."""
        if not self._sweep_lock.acquire(blocking=False):
            return
        try:
            if (
                self._last_sweep_at is not None
                and now - self._last_sweep_at < self._sweep_interval_ms
            ):
                return
            self._last_sweep_at = now
            self.store.sweep_expired(now)
        finally:
            self._sweep_lock.release()

    def _get_or_reset_record(self, identity: str, now: int) -> CounterRecord:
        """Return the live record for identity or a fresh one.

        A record whose window ended at or before ``now`` is replaced, so a
        request landing exactly on the boundary opens a new window.
        """
        record = self.store.get(identity)
        if record is None or record.is_expired(now):
            record = CounterRecord(
                request_count=0,
                window_reset_at=now + self.policy.window_ms,
            )
        return record

    def _build_allowed_result(self, *, remaining: int, reset_at: int) -> AdmissionDecision:
        return AdmissionDecision(
            allowed=True,
            limit=self.policy.max_requests,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: int, reset_at: int) -> AdmissionDecision:
        retry_after = max(0, math.ceil((reset_at - now) / 1000))
        return AdmissionDecision(
            allowed=False,
            limit=self.policy.max_requests,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    def decide(self, identity: str, now: int | None = None) -> AdmissionDecision:
        """Check the identity's budget and count the request when allowed.

        Args:
            identity: Caller identity, used verbatim.
            now: Optional timestamp override in milliseconds.

        Returns:
            AdmissionDecision with allowance and header metadata.
        """
        if now is None:
            now = self._clock()

        self._maybe_sweep(now)

        with self._lock_for(identity):
            record = self._get_or_reset_record(identity, now)

            if record.request_count >= self.policy.max_requests:
                return self._build_blocked_result(now=now, reset_at=record.window_reset_at)

            record.request_count += 1
            self.store.set(identity, record)
            remaining = max(0, self.policy.max_requests - record.request_count)
            return self._build_allowed_result(
                remaining=remaining,
                reset_at=record.window_reset_at,
            )

    def sweep(self, now: int | None = None) -> int:
        if now is None:
            now = self._clock()
        return self.store.sweep_expired(now)
