"""Rate limiter interfaces and value types.

The HTTP layer depends on these abstractions (not the concrete
implementations) so the counter storage can be swapped later with minimal
changes.

All timestamps are integer milliseconds as returned by the configured clock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from chat_gateway.core.errors import PolicyMisconfigurationError

Clock = Callable[[], int]


@dataclass(frozen=True)
class QuotaPolicy:
    """Immutable fixed-window quota.

    Attributes:
        window_ms: Length of one window in milliseconds.
        max_requests: Requests admitted per identity per window. Zero admits
            nothing.

    Raises:
        PolicyMisconfigurationError: If either value is out of range.
    """

    window_ms: int
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_ms <= 0:
            raise PolicyMisconfigurationError(
                code="rate_limit_policy_invalid",
                message="window_ms must be > 0",
                details={"actual_value": self.window_ms},
            )
        if self.max_requests < 0:
            raise PolicyMisconfigurationError(
                code="rate_limit_policy_invalid",
                message="max_requests must be >= 0",
                details={"actual_value": self.max_requests},
            )


@dataclass
class CounterRecord:
    """Per-identity usage within the current window.

    Attributes:
        request_count: Requests admitted in the current window.
        window_reset_at: End of the current window (exclusive).
    """

    request_count: int
    window_reset_at: int

    def is_expired(self, now: int) -> bool:
        return self.window_reset_at <= now


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of a single admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: Timestamp (ms) when the current window ends.
        retry_after_seconds: Seconds until the window resets; None when allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None

    @property
    def reset_at_epoch_seconds(self) -> int:
        """Window end rounded up to whole seconds."""
        return -(-self.reset_at // 1000)


class AbstractCounterStore(ABC):
    """Identity -> CounterRecord mapping."""

    @abstractmethod
    def get(self, identity: str) -> CounterRecord | None:
        """Return the record for identity without side effects."""
        raise NotImplementedError

    @abstractmethod
    def set(self, identity: str, record: CounterRecord) -> None:
        """Insert or replace the record for identity."""
        raise NotImplementedError

    @abstractmethod
    def sweep_expired(self, now: int) -> int:
        """Remove records whose window has ended.

        Args:
            now: Current timestamp in milliseconds.

        Returns:
            Number of records removed.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


class AbstractAdmissionController(ABC):
    """Interface for admission controllers."""

    @abstractmethod
    def decide(self, identity: str, now: int | None = None) -> AdmissionDecision:
        """Check and record one request for identity.

        Args:
            identity: Caller identity, used verbatim as the bucket key.
            now: Optional timestamp override; defaults to the clock.

        Returns:
            AdmissionDecision describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: int | None = None) -> int:
        """Drop expired counter records and return how many were removed."""
        raise NotImplementedError
