"""
Cron Scheduling System

This module defines the core concepts and components of a cron-like, time-based task scheduler.

Core Concepts:

Schedule:
    A Schedule is an immutable predicate over six time fields
    (second, minute, hour, day of month, month, weekday).
    A field left unconstrained matches every value.

ScheduledTask:
    A ScheduledTask pairs a Schedule with a task body. It remembers when it last fired,
    so a matching period produces at most one execution no matter how often it is evaluated.

Job:
    A Job represents a single execution of a ScheduledTask.
    Jobs are tracked while their task body runs and forgotten once it settles.

Relationships:
    - A Cron scheduler owns many ScheduledTasks and one timer driving all of them.
    - A ScheduledTask can have multiple Jobs running at the same time.
"""

from .cron import Cron
from .clock import Clock, SystemClock
from .config import SchedulerConfig
from .domain import Job, Schedule
from .exceptions import ScheduleParseError, SchedulerClosedError
from .job_manager import JobManager
from .scheduled_task import ScheduledTask

__all__ = [
    "Cron",
    "Clock",
    "SystemClock",
    "SchedulerConfig",
    "Job",
    "Schedule",
    "ScheduleParseError",
    "SchedulerClosedError",
    "JobManager",
    "ScheduledTask",
]
