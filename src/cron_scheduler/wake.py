import asyncio
from datetime import datetime
from typing import Callable, Optional

MILLISECONDS_PER_SECOND = 1000
MILLISECONDS_PER_MINUTE = 60 * MILLISECONDS_PER_SECOND


def next_delay(now: datetime, needs_second_granularity: bool) -> int:
    """
    Milliseconds from `now` until the next whole second or whole minute.

    The delay is derived from the wall-clock fields of `now`, so it aligns
    to local boundaries regardless of the time zone offset. A `now` exactly
    on a boundary yields a full period.
    """
    if needs_second_granularity:
        period = MILLISECONDS_PER_SECOND
        elapsed = now.microsecond // 1000
    else:
        period = MILLISECONDS_PER_MINUTE
        elapsed = now.second * MILLISECONDS_PER_SECOND + now.microsecond // 1000
    return period - elapsed


class WakeScheduler:
    """
    Keeps the single timer that wakes the scheduler up on the next aligned boundary.

    The period is global: one live schedule constraining seconds makes every
    schedule get evaluated once per second.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self.second_granularity_count: int = 0
        self.delay: Optional[int] = None

    @property
    def needs_second_granularity(self) -> bool:
        return self.second_granularity_count > 0

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """
        The loop timers are armed on. Raises RuntimeError when none was given and no loop is running.
        """
        return self._loop or asyncio.get_running_loop()

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def add_tracker(self, needs_seconds: bool) -> None:
        if needs_seconds:
            self.second_granularity_count += 1

    def remove_tracker(self, needs_seconds: bool) -> None:
        if needs_seconds and self.second_granularity_count > 0:
            self.second_granularity_count -= 1

    def arm(self, now: datetime, callback: Callable[[], None]) -> Optional[int]:
        """
        Arm the timer unless it is already armed. Returns the delay in milliseconds, if armed now.
        """
        if self._handle is not None:
            return None
        delay = next_delay(now, self.needs_second_granularity)
        self._handle = self.loop.call_later(delay / MILLISECONDS_PER_SECOND, self._fire, callback)
        self.delay = delay
        return delay

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
