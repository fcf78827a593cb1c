import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class SchedulerState(StrEnum):
    IDLE = "idle"
    POLLING = "polling"
    PAUSED = "paused"
    STOPPED = "stopped"


class RefreshScheduler:
    """Visibility-aware polling loop.

    While polling, a timer task runs the refresh callback every interval. Each
    refresh runs as its own task, so pausing or stopping only cancels the timer
    and lets a refresh already in flight complete.
    """

    def __init__(self, refresh: Callable[[], Awaitable[None]], interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._refresh = refresh
        self.interval = interval
        self.state = SchedulerState.IDLE
        self._timer: asyncio.Task[None] | None = None
        self._refresh_tasks: set[asyncio.Task[None]] = set()

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self, visible: bool = True) -> None:
        """Begin polling when visible, otherwise wait paused for visibility."""
        if self.state != SchedulerState.IDLE:
            return
        if visible:
            self._start_timer()
            self.state = SchedulerState.POLLING
        else:
            self.state = SchedulerState.PAUSED
        logger.debug("refresh_scheduler_started", state=self.state, interval=self.interval)

    def set_visible(self, visible: bool) -> None:
        if self.state in (SchedulerState.IDLE, SchedulerState.STOPPED):
            return
        if visible:
            # Catch up immediately, then resume the interval
            self._spawn_refresh()
            self._start_timer()
            self.state = SchedulerState.POLLING
        else:
            self._cancel_timer()
            self.state = SchedulerState.PAUSED

    def stop(self) -> None:
        """Cancel the timer for good; refreshes already running are left to finish."""
        self._cancel_timer()
        self.state = SchedulerState.STOPPED

    async def wait_idle(self) -> None:
        """Wait for in-flight refreshes to finish."""
        while self._refresh_tasks:
            await asyncio.gather(*self._refresh_tasks)

    def _start_timer(self) -> None:
        if self.timer_running:
            return
        self._timer = asyncio.create_task(self._run_timer())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._spawn_refresh()

    def _spawn_refresh(self) -> None:
        task = asyncio.create_task(self._refresh_once())
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _refresh_once(self) -> None:
        try:
            await self._refresh()
        except Exception as e:
            logger.exception("refresh_failed", error=str(e))
