"""
Interval job scheduler on asyncio.

Each enabled job runs once at start and then every ``interval_minutes``.
A tick that fires while the previous run of the same job is still going
is skipped. ``stop()`` cancels the timers only; a run that is already in
progress is awaited, never interrupted.
"""

import asyncio
import logging
from typing import Any, Protocol, Union

logger = logging.getLogger(__name__)


class Job(Protocol):
    name: str
    interval_minutes: Union[int, float]
    enabled: bool

    async def execute(self) -> Any:
        ...


class JobScheduler:

    def __init__(self):
        self._jobs: list[Job] = []
        self._timers: list[asyncio.Task] = []
        self._runs: dict[str, asyncio.Task] = {}

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    def register(self, job: Job):
        self._jobs.append(job)
        logger.info(f"Registered job {job.name} (every {job.interval_minutes} min, enabled={job.enabled})")

    def is_running(self, job_name: str) -> bool:
        run = self._runs.get(job_name)
        return run is not None and not run.done()

    def start(self):
        """Start timers for every enabled job. Must be called inside a running loop."""
        for job in self._jobs:
            if not job.enabled:
                logger.info(f"Job {job.name} is disabled, not scheduling")
                continue
            self._timers.append(asyncio.create_task(self._timer(job), name=f"timer:{job.name}"))

    async def _timer(self, job: Job):
        interval = job.interval_minutes * 60
        while True:
            self._launch(job)
            await asyncio.sleep(interval)

    def _launch(self, job: Job):
        if self.is_running(job.name):
            logger.warning(f"Job {job.name} still running, skipping this tick")
            return
        self._runs[job.name] = asyncio.create_task(self._run(job), name=f"run:{job.name}")

    async def _run(self, job: Job):
        logger.info(f"Job {job.name} started")
        try:
            result = await job.execute()
        except Exception as e:
            logger.error(f"Job {job.name} failed: {e}", exc_info=True)
            return
        logger.info(f"Job {job.name} finished: {result}")

    async def stop(self):
        """Cancel pending timers, then wait for in-flight runs to finish."""
        for timer in self._timers:
            timer.cancel()
        await asyncio.gather(*self._timers, return_exceptions=True)
        self._timers = []

        in_flight = [run for run in self._runs.values() if not run.done()]
        if in_flight:
            logger.info(f"Waiting for {len(in_flight)} running job(s) to finish")
            await asyncio.gather(*in_flight, return_exceptions=True)
        logger.info("Scheduler stopped")
