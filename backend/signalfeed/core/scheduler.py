"""
Cancellable polling task.

Wraps an APScheduler AsyncIOScheduler that belongs to a single task, so two
orchestrators never share a timer. The one job always uses the same id with
replace_existing=True: scheduling again replaces the timer instead of adding a
second one.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

log = logging.getLogger("core.scheduler")

JOB_ID = "poll"


class PollingTask:
    """Run `callback` every `interval_seconds` until stopped."""

    def __init__(self, callback: Callable[[], Awaitable[None]], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.get_job(JOB_ID) is not None

    def start(self) -> None:
        """
        Schedule the recurring job. The first run happens one interval from now.
        Must be called from inside a running event loop.
        """
        if self._scheduler is None:
            # Now, we bind the scheduler to the loop we are running on.
            self._scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
            self._scheduler.start()

        self._scheduler.add_job(
            self.callback,
            "interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        log.debug("Polling every %.1f seconds", self.interval_seconds)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        # Now, we drop the job right away; AsyncIOScheduler defers shutdown to the next loop pass.
        self._scheduler.remove_all_jobs()
        self._scheduler.shutdown(wait=False)
        self._scheduler = None

    def reset(self) -> None:
        """Restart the interval from now."""
        self.stop()
        self.start()
