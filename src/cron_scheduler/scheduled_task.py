import logging
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

from cron_scheduler.domain.job import Job
from cron_scheduler.domain.schedule import Schedule

logger = logging.getLogger(__name__)

# A task body takes no arguments; it may return an awaitable, which is awaited.
TaskBody = Callable[[], Union[Any, Awaitable[Any]]]


class ScheduledTask:
    """
    A task registered with a Cron scheduler, together with its firing state.

    The scheduler asks `accept` on every wake-up; at most one Job is produced
    per matching period, however often the same period is evaluated.
    """

    def __init__(
        self,
        schedule: Schedule,
        task: TaskBody,
        on_cancel: Optional[Callable[["ScheduledTask"], None]] = None,
    ):
        self.id: str = f"tsk_{uuid.uuid4().hex}"
        self.schedule: Schedule = schedule
        self.task: TaskBody = task
        self.last_fire_time: Optional[datetime] = None
        self._on_cancel = on_cancel
        self._closed: bool = False

    @property
    def is_active(self) -> bool:
        return not self._closed

    def _period_start(self, instant: datetime) -> datetime:
        if self.schedule.seconds is not None:
            return instant.replace(microsecond=0)
        return instant.replace(second=0, microsecond=0)

    def accept(self, now: datetime) -> Optional[Job]:
        """
        Return a new Job if `now` matches the schedule in a period not fired yet.
        """
        if self._closed:
            return None
        if not self.schedule.should_match(now):
            return None
        if self.last_fire_time is not None and self._period_start(now) <= self._period_start(self.last_fire_time):
            return None
        self.last_fire_time = now
        return Job.for_firing(self.id, now)

    async def cancel(self) -> None:
        """
        Stop future firings. Jobs already started keep running.
        """
        if self._closed:
            return
        self._closed = True
        logger.debug(f"Scheduled task {self.id} cancelled")
        if self._on_cancel is not None:
            self._on_cancel(self)

    def __repr__(self) -> str:
        return f"ScheduledTask(id={self.id!r}, schedule={self.schedule.to_cron_string(has_second=True)!r}, active={self.is_active})"
