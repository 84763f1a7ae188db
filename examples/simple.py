import asyncio
import logging

from cron_scheduler import Cron, Schedule, SchedulerConfig

logging.basicConfig(level=logging.DEBUG)


async def report():
    print("Reporting...")
    await asyncio.sleep(2)


def flaky():
    raise RuntimeError("this failure is logged and swallowed")


async def main():
    cron = Cron(SchedulerConfig.from_env())
    every_ten_seconds = cron.register(Schedule(seconds="*/10"), report)
    cron.register("* * * * *", flaky)

    for _ in range(30):
        await asyncio.sleep(1)
        print(f"{every_ten_seconds.id} running jobs: {cron.count(every_ten_seconds.id)}")

    await cron.shutdown()

if __name__ == "__main__":
    asyncio.run(main())
