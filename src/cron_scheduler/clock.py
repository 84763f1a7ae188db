from datetime import datetime, tzinfo
from typing import Optional, Protocol


class Clock(Protocol):
    """
    Protocol class for the wall-clock time source used by the scheduler.
    """

    def now(self) -> datetime:
        """
        Return the current wall-clock time.
        """
        ...


class SystemClock(Clock):
    """
    Clock backed by the system time, in the given time zone or as naive local time.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz: Optional[tzinfo] = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)
