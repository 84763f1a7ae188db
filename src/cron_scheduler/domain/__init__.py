from .schedule import Schedule
from .job import Job

__all__ = ["Schedule", "Job"]
