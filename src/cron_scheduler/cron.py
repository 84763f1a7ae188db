import asyncio
import logging
from typing import List, Optional, Union

from cron_scheduler.clock import Clock, SystemClock
from cron_scheduler.config import SchedulerConfig
from cron_scheduler.domain.job import Job
from cron_scheduler.domain.schedule import Schedule
from cron_scheduler.exceptions import SchedulerClosedError
from cron_scheduler.job_manager import JobManager
from cron_scheduler.scheduled_task import ScheduledTask, TaskBody
from cron_scheduler.wake import WakeScheduler

logger = logging.getLogger(__name__)


class Cron:
    """
    A cron-like time-based job scheduler running on an asyncio event loop.

    A single timer drives every registered task: on each wake-up all tasks are
    evaluated against the current time, matching ones are started, and the
    timer is re-armed for the next whole minute (or whole second, when any
    live schedule constrains seconds).
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Clock] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.config: SchedulerConfig = config or SchedulerConfig()
        self.clock: Clock = clock or SystemClock(self.config.tzinfo)
        self.job_manager: JobManager = JobManager(run_sync_in_thread=self.config.run_sync_in_thread)
        self.wake_scheduler: WakeScheduler = WakeScheduler(loop)
        self._scheduled_tasks: List[ScheduledTask] = []
        self._live_count: int = 0
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def scheduled_tasks(self) -> List[ScheduledTask]:
        return list(self._scheduled_tasks)

    def register(self, schedule: Union[Schedule, str], task: TaskBody) -> ScheduledTask:
        """
        Schedule `task` to run whenever the current time matches `schedule`.

        Args:
            schedule (Union[Schedule, str]): A Schedule or a 5/6-field cron expression.
            task (TaskBody): A zero-argument callable, plain or async.

        Returns:
            ScheduledTask: The handle used to inspect or cancel the registration.

        A schedule constraining seconds re-arms a pending minute-aligned timer,
        so its first firing is not held back until the next whole minute.

        Raises:
            SchedulerClosedError: If the scheduler has been shut down.
            ScheduleParseError: If `schedule` is a malformed cron expression.
            RuntimeError: If no loop was given and none is running.
        """
        if self._closed:
            raise SchedulerClosedError("Cron scheduler is closed")
        if isinstance(schedule, str):
            schedule = Schedule.parse(schedule)
        # fail before any state changes
        self.wake_scheduler.loop

        scheduled_task = ScheduledTask(schedule, task, on_cancel=self._handle_cancel)
        self._scheduled_tasks.append(scheduled_task)
        self._live_count += 1
        if schedule.requires_second_granularity and not self.wake_scheduler.needs_second_granularity:
            self.wake_scheduler.disarm()
        self.wake_scheduler.add_tracker(schedule.requires_second_granularity)
        logger.debug(f"Registered {scheduled_task!r}")
        self._schedule_next_tick()
        return scheduled_task

    def _handle_cancel(self, scheduled_task: ScheduledTask) -> None:
        self._live_count -= 1
        self.wake_scheduler.remove_tracker(scheduled_task.schedule.requires_second_granularity)

    def is_running(self, task_id: str) -> bool:
        return self.job_manager.is_running(task_id)

    def count(self, task_id: str) -> int:
        return self.job_manager.count(task_id)

    def jobs(self, task_id: str) -> List[Job]:
        return self.job_manager.jobs(task_id)

    def _schedule_next_tick(self) -> None:
        if self._closed or self._live_count == 0:
            return
        delay = self.wake_scheduler.arm(self.clock.now(), self._tick)
        if delay is not None:
            logger.debug(f"Next tick in {delay} ms")

    def _tick(self) -> None:
        now = self.clock.now()
        for scheduled_task in self._scheduled_tasks:
            job = scheduled_task.accept(now)
            if job is not None:
                logger.debug(f"Starting job {job.id}")
                self.job_manager.start(job, scheduled_task.task)
        self._schedule_next_tick()

    async def shutdown(self) -> None:
        """
        Stop accepting tasks and stop firing. Jobs already running are not awaited.
        """
        self._closed = True
        self.wake_scheduler.disarm()
        for scheduled_task in self._scheduled_tasks:
            await scheduled_task.cancel()
        logger.info("Cron scheduler closed.")

    async def __aenter__(self) -> "Cron":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()
