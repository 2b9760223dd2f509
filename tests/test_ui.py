"""Tests for the textual front end."""

import asyncio

from focustimer.clock import ManualClock
from focustimer.scheduler import Phase, PhaseScheduler
from focustimer.storage import ConfigStore, MemoryBackend
from focustimer.ui import FocusTimerApp, format_mmss, settings_summary, window_title


def test_format_mmss():
    assert format_mmss(1500) == "25:00"
    assert format_mmss(61) == "01:01"
    assert format_mmss(0) == "00:00"
    assert format_mmss(-3) == "00:00"
    assert format_mmss(180 * 60) == "180:00"


def test_window_title_and_summary():
    scheduler = PhaseScheduler(ConfigStore(MemoryBackend()), ManualClock())
    assert window_title(scheduler) == "WORK 25:00"
    assert settings_summary(scheduler).startswith("25/5/15 min")

    scheduler.set_preference("long_break_every", 0)
    assert "long break off" in settings_summary(scheduler)


def test_keys_drive_scheduler():
    async def run():
        app = FocusTimerApp(ConfigStore(MemoryBackend()))
        async with app.run_test() as pilot:
            await pilot.press("space")
            assert app.scheduler.is_running

            await pilot.press("n")
            assert app.scheduler.phase == Phase.BREAK
            assert not app.scheduler.is_running

            await pilot.press("3")
            assert app.scheduler.remaining_seconds == 10 * 60

            await pilot.press("x")
            assert app.scheduler.phase == Phase.WORK
            assert app.scheduler.completed_work_sessions == 0
            assert app.title == "WORK 50:00"

    asyncio.run(run())

