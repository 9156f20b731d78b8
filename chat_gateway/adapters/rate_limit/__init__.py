"""Rate limiting adapters.

This package provides a small abstraction layer so the gateway can start with
an in-memory counter store and later migrate to another store without
changing the API layer.
"""

from chat_gateway.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AbstractCounterStore,
    AdmissionDecision,
    CounterRecord,
    QuotaPolicy,
)
from chat_gateway.adapters.rate_limit.fixed_window import FixedWindowAdmissionController
from chat_gateway.adapters.rate_limit.in_memory import InMemoryCounterStore
from chat_gateway.adapters.rate_limit.sweeper import RateLimitSweeper

__all__ = [
    "AbstractAdmissionController",
    "AbstractCounterStore",
    "AdmissionDecision",
    "CounterRecord",
    "FixedWindowAdmissionController",
    "InMemoryCounterStore",
    "QuotaPolicy",
    "RateLimitSweeper",
]
