import asyncio
import inspect
import logging
from typing import Dict, List

from cron_scheduler.domain.job import Job
from cron_scheduler.scheduled_task import TaskBody

logger = logging.getLogger(__name__)


class JobManager:
    """
    Tracks the in-flight jobs of every scheduled task.

    Jobs are recorded when started and removed when their task body settles,
    whether it succeeded or failed. Overlapping jobs of the same task are allowed.
    All bookkeeping happens on the event loop thread.
    """

    def __init__(self, run_sync_in_thread: bool = False):
        self.run_sync_in_thread: bool = run_sync_in_thread
        self._jobs: Dict[str, List[Job]] = {}
        self._futures: Dict[str, asyncio.Task] = {}

    def start(self, job: Job, task: TaskBody) -> asyncio.Task:
        """
        Record the job and run its task body in the background.
        """
        self._jobs.setdefault(job.task_id, []).append(job)
        future = asyncio.create_task(self._execute(job, task), name=job.id)
        self._futures[job.id] = future
        return future

    async def _execute(self, job: Job, task: TaskBody) -> None:
        try:
            if self.run_sync_in_thread and not inspect.iscoroutinefunction(task):
                result = await asyncio.to_thread(task)
            else:
                result = task()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            logger.debug(f"Job {job.id} cancelled")
            raise
        except Exception as e:
            logger.warning(f"Error executing job {job.id}: {e}")
        finally:
            self._finish(job)

    def _finish(self, job: Job) -> None:
        self._futures.pop(job.id, None)
        jobs = self._jobs.get(job.task_id)
        if jobs is None:
            return
        for index, running in enumerate(jobs):
            if running.id == job.id:
                del jobs[index]
                break
        if not jobs:
            del self._jobs[job.task_id]

    def is_running(self, task_id: str) -> bool:
        return bool(self._jobs.get(task_id))

    def count(self, task_id: str) -> int:
        return len(self._jobs.get(task_id, []))

    def jobs(self, task_id: str) -> List[Job]:
        return list(self._jobs.get(task_id, []))
