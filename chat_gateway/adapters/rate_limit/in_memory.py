"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around the mapping so sweeps can run from a
  background task while requests are being admitted.
"""

from __future__ import annotations

import threading

from chat_gateway.adapters.rate_limit.base import AbstractCounterStore, CounterRecord


class InMemoryCounterStore(AbstractCounterStore):
    """Dictionary-backed store of counter records keyed by identity."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, CounterRecord] = {}

    def get(self, identity: str) -> CounterRecord | None:
        with self._lock:
            return self._records.get(identity)

    def set(self, identity: str, record: CounterRecord) -> None:
        with self._lock:
            self._records[identity] = record

    def sweep_expired(self, now: int) -> int:
        with self._lock:
            expired = [
                identity
                for identity, record in self._records.items()
                if record.is_expired(now)
            ]
            for identity in expired:
                del self._records[identity]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
