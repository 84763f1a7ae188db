from datetime import datetime

import pytest


class FakeClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 30, 500000))
