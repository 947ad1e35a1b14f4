"""Tests for DeferredTaskRunner."""
import asyncio
import logging

from notifier.infra.jobs.deferred import DeferredTaskRunner


async def test_scheduled_task_runs_without_blocking_caller():
    runner = DeferredTaskRunner()
    ran = []

    async def work():
        ran.append(True)

    runner.schedule(work, 0.01, name="work")
    assert ran == []
    assert runner.pending == 1

    await runner.drain()
    assert ran == [True]
    assert runner.pending == 0


async def test_failures_are_logged_not_raised(caplog):
    runner = DeferredTaskRunner()

    async def broken():
        raise RuntimeError("receipt service down")

    with caplog.at_level(logging.ERROR, logger="notifier.infra.jobs.deferred"):
        runner.schedule(broken, 0, name="receipts:n-1")
        await runner.drain()

    assert "receipts:n-1" in caplog.text
    assert "receipt service down" in caplog.text


async def test_cancel_all_drops_pending_work():
    runner = DeferredTaskRunner()
    ran = []

    async def work():
        ran.append(True)

    runner.schedule(work, 60, name="slow")
    await asyncio.sleep(0)
    await runner.cancel_all()

    assert ran == []
    assert runner.pending == 0
