"""
Aura — Heartbeat Scheduler

Runs named background jobs on a fixed interval. The monologue heartbeat is
the main tenant: it reflects between conversations, independently of the
turn pipeline.

Usage:
    scheduler = HeartbeatScheduler()
    scheduler.register(
        name="monologue",
        interval_seconds=1800,          # every 30 minutes
        fn=monologue.run_heartbeat,     # async () -> Any
    )
    await scheduler.start()
    ...
    await scheduler.stop()

Design notes:
- Each job runs independently; a slow job does not block others.
- Jobs fire immediately on first tick (no initial delay), then at interval.
- Exceptions in job callables are caught and logged; the scheduler
  keeps running.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine

import structlog

logger = structlog.get_logger("aura.scheduler")

JobFn = Callable[[], Coroutine[Any, Any, Any]]


@dataclass
class _ScheduledJob:
    name: str
    interval_seconds: float
    fn: JobFn
    # runtime state
    _task: asyncio.Task[None] | None = field(default=None, repr=False)
    _run_count: int = field(default=0, repr=False)
    _error_count: int = field(default=0, repr=False)


class HeartbeatScheduler:
    def __init__(self) -> None:
        self._jobs: dict[str, _ScheduledJob] = {}
        self._started = False

    # ── Registration ──────────────────────────────────────────────

    def register(self, name: str, interval_seconds: float, fn: JobFn) -> None:
        """
        Register a job. Re-registering an existing name replaces it.
        If the scheduler is already running, the job starts immediately.
        """
        if name in self._jobs:
            self.unregister(name)

        job = _ScheduledJob(name=name, interval_seconds=interval_seconds, fn=fn)
        self._jobs[name] = job

        if self._started:
            job._task = asyncio.create_task(self._run_job(job), name=f"scheduler:{name}")
            logger.info("scheduler_job_registered_live", name=name)

    def unregister(self, name: str) -> None:
        job = self._jobs.pop(name, None)
        if job is None:
            return
        if job._task is not None and not job._task.done():
            job._task.cancel()
        logger.info("scheduler_job_unregistered", name=name)

    # ── Lifecycle ─────────────────────────────────────────────────

    async def start(self) -> None:
        self._started = True
        for job in self._jobs.values():
            if job._task is None or job._task.done():
                job._task = asyncio.create_task(self._run_job(job), name=f"scheduler:{job.name}")
        logger.info("scheduler_started", job_count=len(self._jobs))

    async def stop(self) -> None:
        self._started = False
        for job in self._jobs.values():
            if job._task is not None and not job._task.done():
                job._task.cancel()
                try:
                    await job._task
                except asyncio.CancelledError:
                    pass
        logger.info("scheduler_stopped", job_count=len(self._jobs))

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "running": self._started,
            "jobs": {
                name: {
                    "interval_seconds": j.interval_seconds,
                    "run_count": j._run_count,
                    "error_count": j._error_count,
                    "active": j._task is not None and not j._task.done(),
                }
                for name, j in self._jobs.items()
            },
        }

    # ── Internals ─────────────────────────────────────────────────

    async def _run_job(self, job: _ScheduledJob) -> None:
        first = True
        while True:
            if not first:
                try:
                    await asyncio.sleep(job.interval_seconds)
                except asyncio.CancelledError:
                    logger.debug("scheduler_job_cancelled", name=job.name)
                    return
            first = False

            try:
                await job.fn()
            except asyncio.CancelledError:
                return
            except Exception as exc:
                job._error_count += 1
                logger.warning("scheduler_job_error", name=job.name, error=str(exc))
                continue

            job._run_count += 1
            logger.debug("scheduler_job_ran", name=job.name, run_count=job._run_count)
