from datetime import datetime

from pydantic import BaseModel, Field


def epoch_millis(instant: datetime) -> int:
    return int(instant.timestamp()) * 1000 + instant.microsecond // 1000


class Job(BaseModel):
    """
    Represents a single in-flight execution of a scheduled task.
    """
    id: str = Field(..., description="Unique job identifier, derived from the task id and fire time")
    task_id: str = Field(..., description="Identifier of the scheduled task that spawned this job")
    fire_time: datetime = Field(..., description="The instant the schedule matched")

    @classmethod
    def for_firing(cls, task_id: str, fire_time: datetime) -> "Job":
        return cls(id=f"{task_id}-{epoch_millis(fire_time)}", task_id=task_id, fire_time=fire_time)
