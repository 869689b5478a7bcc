"""Tests for the clock and delay scheduler."""

import asyncio
from datetime import UTC, datetime, timedelta, timezone

import pytest

from site_accounts.core.scheduler import AsyncioScheduler, ManualScheduler, isoformat_utc


def test_isoformat_utc():
    """Test browser-style ISO formatting."""
    moment = datetime(2025, 3, 4, 5, 6, 7, 891234, tzinfo=UTC)

    assert isoformat_utc(moment) == "2025-03-04T05:06:07.891Z"


def test_isoformat_utc_converts_timezones():
    """Test non-UTC datetimes are converted first."""
    moment = datetime(2025, 1, 1, 8, 0, tzinfo=timezone(timedelta(hours=8)))

    assert isoformat_utc(moment) == "2025-01-01T00:00:00.000Z"


@pytest.mark.asyncio
async def test_manual_scheduler_only_moves_on_advance():
    """Test the manual clock stands still until advanced."""
    scheduler = ManualScheduler()
    start = scheduler.now()

    await scheduler.advance(1.5)

    assert scheduler.now() - start == timedelta(seconds=1.5)
    assert scheduler.timestamp() == "2025-01-01T00:00:01.500Z"


@pytest.mark.asyncio
async def test_manual_scheduler_releases_sleepers_when_due():
    """Test sleepers wake in deadline order once their time has come."""
    scheduler = ManualScheduler()
    woke: list[str] = []

    async def sleeper(name: str, seconds: float) -> None:
        await scheduler.sleep(seconds)
        woke.append(name)

    tasks = [
        asyncio.ensure_future(sleeper("slow", 1.2)),
        asyncio.ensure_future(sleeper("fast", 0.3)),
    ]

    await scheduler.advance(0.2)
    assert woke == []
    assert scheduler.pending == 2

    await scheduler.advance(0.1)
    assert woke == ["fast"]
    assert scheduler.pending == 1

    await scheduler.advance(0.9)
    assert woke == ["fast", "slow"]
    assert scheduler.pending == 0

    await asyncio.gather(*tasks)


@pytest.mark.asyncio
async def test_manual_scheduler_small_steps_do_not_drift():
    """Test many small advances add up exactly."""
    scheduler = ManualScheduler()
    task = asyncio.ensure_future(scheduler.sleep(0.8))

    for _ in range(8):
        await scheduler.advance(0.1)

    assert task.done()


@pytest.mark.asyncio
async def test_asyncio_scheduler():
    """Test the wall-clock scheduler."""
    scheduler = AsyncioScheduler()

    await scheduler.sleep(0)

    assert scheduler.now().tzinfo is not None
    assert scheduler.timestamp().endswith("Z")
