import os
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

_TRUTHY = {"1", "true", "yes", "on"}


class SchedulerConfig(BaseModel):
    """
    Runtime options of a Cron scheduler.
    """
    timezone: Optional[str] = Field(None, description="IANA time zone schedules are evaluated in. Defaults to naive local time")
    run_sync_in_thread: bool = Field(default=False, description="Run plain (non-async) task bodies in a worker thread instead of on the event loop")

    @field_validator("timezone")
    def check_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone '{v}'")
        return v

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    @classmethod
    def from_env(cls) -> "SchedulerConfig":
        """
        Build a config from CRON_SCHEDULER_TIMEZONE and CRON_SCHEDULER_RUN_SYNC_IN_THREAD.
        """
        return cls(
            timezone=os.environ.get("CRON_SCHEDULER_TIMEZONE") or None,
            run_sync_in_thread=os.environ.get("CRON_SCHEDULER_RUN_SYNC_IN_THREAD", "").strip().lower() in _TRUTHY,
        )
