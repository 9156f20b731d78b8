"""Background sweep of expired counter records.

The admission path sweeps opportunistically, which only happens while
traffic keeps arriving. This task bounds memory independently of traffic by
sweeping on a fixed interval for as long as the application runs.
"""

from __future__ import annotations

import asyncio
import logging

from chat_gateway.adapters.rate_limit.base import AbstractAdmissionController

logger = logging.getLogger(__name__)


class RateLimitSweeper:
    """Periodically calls ``controller.sweep()`` from an asyncio task."""

    def __init__(
        self,
        controller: AbstractAdmissionController,
        *,
        interval_seconds: float,
    ) -> None:
        self._controller = controller
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                removed = self._controller.sweep()
            except Exception:
                logger.exception("rate_limit.sweep_failed")
                continue
            if removed:
                logger.debug("rate_limit.swept", extra={"removed": removed})

    async def start(self) -> None:
        """Start the sweep loop. No-op when disabled or already running."""
        if self._interval_seconds <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rate-limit-sweeper")
        logger.info(
            "rate_limit.sweeper_started",
            extra={"interval_s": self._interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("rate_limit.sweeper_stopped")
