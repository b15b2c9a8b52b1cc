"""Unit tests for HeartbeatScheduler."""

from __future__ import annotations

import asyncio

from aura.clients.scheduler import HeartbeatScheduler


async def _wait_for(predicate, timeout: float = 1.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


class TestHeartbeatScheduler:
    async def test_fires_immediately_then_repeats(self) -> None:
        calls: list[int] = []

        async def job() -> None:
            calls.append(1)

        scheduler = HeartbeatScheduler()
        scheduler.register("monologue", 0.01, job)
        await scheduler.start()
        try:
            await _wait_for(lambda: len(calls) >= 3)
        finally:
            await scheduler.stop()
        assert scheduler.stats["jobs"]["monologue"]["run_count"] >= 3

    async def test_job_errors_do_not_stop_the_loop(self) -> None:
        attempts: list[int] = []

        async def flaky() -> None:
            attempts.append(1)
            raise RuntimeError("provider down")

        scheduler = HeartbeatScheduler()
        scheduler.register("flaky", 0.01, flaky)
        await scheduler.start()
        try:
            await _wait_for(lambda: len(attempts) >= 2)
        finally:
            await scheduler.stop()
        assert scheduler.stats["jobs"]["flaky"]["error_count"] >= 2

    async def test_stop_cancels_jobs(self) -> None:
        async def job() -> None:
            return None

        scheduler = HeartbeatScheduler()
        scheduler.register("idle", 60.0, job)
        await scheduler.start()
        await scheduler.stop()
        stats = scheduler.stats
        assert stats["running"] is False
        assert stats["jobs"]["idle"]["active"] is False

    async def test_unregister(self) -> None:
        async def job() -> None:
            return None

        scheduler = HeartbeatScheduler()
        scheduler.register("gone", 60.0, job)
        scheduler.unregister("gone")
        assert "gone" not in scheduler.stats["jobs"]
