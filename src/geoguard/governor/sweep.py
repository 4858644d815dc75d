"""Periodic background pruning of the call log."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from geoguard._constants import SWEEP_INTERVAL_S
from geoguard.governor.state import GovernorState

_logger = logging.getLogger(__name__)


class CallLogSweeper:
    """Runs :meth:`GovernorState.sweep` every *interval* seconds.

    At most one sweep loop is active per sweeper; ``start`` is a no-op
    while the loop is running.  The sweep takes the state's own lock, so
    it is serialized with foreground calls.
    """

    def __init__(self, state: GovernorState, *, interval: float = SWEEP_INTERVAL_S) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._state = state
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="geoguard-call-log-sweep")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        _logger.debug("Call log sweep started (every %.1fs)", self._interval)
        while True:
            await asyncio.sleep(self._interval)
            self._state.sweep()
