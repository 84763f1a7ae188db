import asyncio
from datetime import datetime
from typing import List

import pytest
import pytest_asyncio

from cron_scheduler.clock import SystemClock
from cron_scheduler.config import SchedulerConfig
from cron_scheduler.cron import Cron
from cron_scheduler.domain.schedule import Schedule
from cron_scheduler.exceptions import ScheduleParseError, SchedulerClosedError


@pytest_asyncio.fixture(scope="function")
async def cron(clock):
    cron = Cron(clock=clock)
    yield cron
    await cron.shutdown()


@pytest.mark.asyncio
async def test_register_arms_the_timer(cron: Cron) -> None:
    assert not cron.wake_scheduler.armed
    scheduled_task = cron.register(Schedule(minutes=1), lambda: None)
    assert cron.wake_scheduler.armed
    assert scheduled_task in cron.scheduled_tasks
    assert scheduled_task.is_active


@pytest.mark.asyncio
async def test_task_fires_when_the_minute_matches(cron: Cron, clock) -> None:
    calls: List[datetime] = []
    clock.current = datetime(2024, 1, 1, 12, 0, 59, 950000)
    scheduled_task = cron.register("1 12 * * *", lambda: calls.append(clock.now()))

    clock.current = datetime(2024, 1, 1, 12, 1, 0)
    await asyncio.sleep(0.2)

    assert calls == [datetime(2024, 1, 1, 12, 1, 0)]
    assert scheduled_task.last_fire_time == datetime(2024, 1, 1, 12, 1, 0)
    assert cron.wake_scheduler.armed


@pytest.mark.asyncio
async def test_repeated_ticks_fire_once(cron: Cron, clock) -> None:
    calls: List[datetime] = []
    clock.current = datetime(2024, 1, 1, 12, 1, 0)
    cron.register(Schedule(minutes=1), lambda: calls.append(clock.now()))

    cron._tick()
    clock.current = datetime(2024, 1, 1, 12, 1, 30)
    cron._tick()
    await asyncio.sleep(0)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_second_schedules_switch_to_second_granularity(cron: Cron, clock) -> None:
    minutely = cron.register(Schedule(minutes=0), lambda: None)
    assert not cron.wake_scheduler.needs_second_granularity

    secondly = cron.register(Schedule(seconds="*/10"), lambda: None)
    assert cron.wake_scheduler.needs_second_granularity

    await secondly.cancel()
    assert not cron.wake_scheduler.needs_second_granularity
    assert minutely.is_active


@pytest.mark.asyncio
async def test_second_schedule_fires_on_next_second(cron: Cron, clock) -> None:
    calls: List[datetime] = []
    clock.current = datetime(2024, 1, 1, 12, 0, 0, 980000)
    cron.register(Schedule(seconds=1), lambda: calls.append(clock.now()))

    clock.current = datetime(2024, 1, 1, 12, 0, 1)
    await asyncio.sleep(0.2)

    assert calls == [datetime(2024, 1, 1, 12, 0, 1)]


@pytest.mark.asyncio
async def test_overlapping_runs_are_tracked(cron: Cron, clock) -> None:
    release = asyncio.Event()

    async def body() -> None:
        await release.wait()

    clock.current = datetime(2024, 1, 1, 12, 0, 0)
    scheduled_task = cron.register("* * * * *", body)
    cron._tick()
    clock.current = datetime(2024, 1, 1, 12, 1, 0)
    cron._tick()
    await asyncio.sleep(0)

    assert cron.is_running(scheduled_task.id)
    assert cron.count(scheduled_task.id) == 2
    assert len(cron.jobs(scheduled_task.id)) == 2

    release.set()
    await asyncio.sleep(0.01)
    assert not cron.is_running(scheduled_task.id)
    assert cron.count(scheduled_task.id) == 0


@pytest.mark.asyncio
async def test_failing_task_does_not_stop_scheduling(cron: Cron, clock) -> None:
    calls: List[datetime] = []

    def broken() -> None:
        calls.append(clock.now())
        raise RuntimeError("boom")

    clock.current = datetime(2024, 1, 1, 12, 0, 0)
    scheduled_task = cron.register("* * * * *", broken)
    cron._tick()
    await asyncio.sleep(0)
    assert cron.count(scheduled_task.id) == 0

    clock.current = datetime(2024, 1, 1, 12, 1, 0)
    cron._tick()
    await asyncio.sleep(0)
    assert len(calls) == 2
    assert cron.count(scheduled_task.id) == 0


@pytest.mark.asyncio
async def test_cancelled_task_stops_firing(cron: Cron, clock) -> None:
    calls: List[datetime] = []
    clock.current = datetime(2024, 1, 1, 12, 0, 0)
    scheduled_task = cron.register("* * * * *", lambda: calls.append(clock.now()))
    other = cron.register("* * * * *", lambda: None)

    await scheduled_task.cancel()
    cron._tick()
    await asyncio.sleep(0)

    assert calls == []
    assert other.last_fire_time == datetime(2024, 1, 1, 12, 0, 0)


@pytest.mark.asyncio
async def test_timer_is_not_rearmed_without_live_tasks(cron: Cron, clock) -> None:
    scheduled_task = cron.register("* * * * *", lambda: None)
    await scheduled_task.cancel()
    cron.wake_scheduler.disarm()

    cron._tick()
    assert not cron.wake_scheduler.armed


@pytest.mark.asyncio
async def test_shutdown_rejects_new_work(cron: Cron) -> None:
    scheduled_task = cron.register("* * * * *", lambda: None)
    await cron.shutdown()

    assert cron.closed
    assert not cron.wake_scheduler.armed
    assert not scheduled_task.is_active
    with pytest.raises(SchedulerClosedError):
        cron.register("* * * * *", lambda: None)


@pytest.mark.asyncio
async def test_shutdown_does_not_wait_for_running_jobs(cron: Cron, clock) -> None:
    release = asyncio.Event()

    async def body() -> None:
        await release.wait()

    clock.current = datetime(2024, 1, 1, 12, 0, 0)
    scheduled_task = cron.register("* * * * *", body)
    cron._tick()
    await asyncio.sleep(0)

    await cron.shutdown()
    assert cron.count(scheduled_task.id) == 1

    release.set()
    await asyncio.sleep(0.01)
    assert cron.count(scheduled_task.id) == 0


@pytest.mark.asyncio
async def test_register_rejects_malformed_expression(cron: Cron) -> None:
    with pytest.raises(ScheduleParseError):
        cron.register("* * *", lambda: None)
    with pytest.raises(ScheduleParseError, match="Invalid range in: 5-1"):
        cron.register("* * 5-1 * *", lambda: None)
    assert cron.scheduled_tasks == []
    assert not cron.wake_scheduler.armed


def test_register_without_running_loop_leaves_no_task(clock) -> None:
    cron = Cron(clock=clock)
    with pytest.raises(RuntimeError):
        cron.register(Schedule(seconds=5), lambda: None)

    assert cron.scheduled_tasks == []
    assert not cron.wake_scheduler.needs_second_granularity
    assert not cron.wake_scheduler.armed


def test_register_with_explicit_loop_outside_it(clock) -> None:
    loop = asyncio.new_event_loop()
    try:
        cron = Cron(clock=clock, loop=loop)
        scheduled_task = cron.register("* * * * *", lambda: None)
        assert cron.scheduled_tasks == [scheduled_task]
        assert cron.wake_scheduler.armed
        loop.run_until_complete(cron.shutdown())
    finally:
        loop.close()


@pytest.mark.asyncio
async def test_second_schedule_rearms_a_minute_timer(cron: Cron, clock) -> None:
    cron.register(Schedule(minutes=0), lambda: None)
    assert cron.wake_scheduler.delay == 29500

    cron.register(Schedule(seconds="*/10"), lambda: None)
    assert cron.wake_scheduler.armed
    assert cron.wake_scheduler.delay == 500

    cron.register(Schedule(seconds=5), lambda: None)
    assert cron.wake_scheduler.delay == 500


@pytest.mark.asyncio
async def test_context_manager_shuts_down(clock) -> None:
    async with Cron(clock=clock) as cron:
        cron.register("* * * * *", lambda: None)
        assert cron.wake_scheduler.armed
    assert cron.closed
    assert not cron.wake_scheduler.armed


def test_configured_timezone_selects_the_clock() -> None:
    cron = Cron(SchedulerConfig(timezone="UTC"))
    assert isinstance(cron.clock, SystemClock)
    assert cron.clock.now().tzinfo is not None
    assert Cron().clock.now().tzinfo is None
