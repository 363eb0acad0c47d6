import asyncio

import pytest
from unittest.mock import AsyncMock

from room_design.core.rotation_scheduler import ThemeRotationScheduler


@pytest.mark.asyncio
async def test_run_once_delegates_to_lifecycle(lifecycle):
    scheduler = ThemeRotationScheduler(lifecycle, interval_seconds=60)

    theme = await scheduler.run_once()

    assert theme.name == "School"
    assert (await lifecycle.get_current_theme()).id == theme.id


@pytest.mark.asyncio
async def test_worker_survives_failed_ticks():
    lifecycle = AsyncMock()
    calls = 0

    async def rotate():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("store hiccup")
        return None

    lifecycle.rotate.side_effect = rotate
    scheduler = ThemeRotationScheduler(lifecycle, interval_seconds=0)

    scheduler.start()
    for _ in range(50):
        if calls >= 3:
            break
        await asyncio.sleep(0)
    await scheduler.stop()

    assert calls >= 3
    assert not scheduler.running


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_cancels(lifecycle):
    scheduler = ThemeRotationScheduler(lifecycle, interval_seconds=3600)

    task = scheduler.start()
    assert scheduler.start() is task
    assert scheduler.running

    await scheduler.stop()
    assert task.cancelled()
    assert not scheduler.running
    await scheduler.stop()
