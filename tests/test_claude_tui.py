"""Tests for the watch dashboard."""

import asyncio
import threading

import pytest
from rich.panel import Panel

from claude_tui import (
    ClaudeLimitsTUI,
    LimitRow,
    LimitsPanel,
    build_limit_rows,
    error_panel,
    limits_panel,
    render_bar,
)
from fuzzy_match import flatten_data
from limits_config import PRESETS
from oauth_usage_api import Usage
from usage_errors import NoMatchError
from usage_formatter import format_string


class TestBuildLimitRows:

    def test_rows_from_usage(self):
        data = {
            "five_hour": {"utilization": 42.0, "resets_at": "2026-01-10T15:00:00Z"},
            "seven_day": {"utilization": 17},
            "extra_usage": {"is_enabled": True, "monthly_limit": 5000},
        }
        formats = PRESETS["iso8601"]

        rows = build_limit_rows(flatten_data(data), formats)

        assert rows == [
            LimitRow(label="Five Hour", percent=42.0,
                     resets_at=format_string("2026-01-10T15:00:00Z", "resets_at", formats)),
            LimitRow(label="Seven Day", percent=17.0),
        ]

    def test_top_level_utilization(self):
        rows = build_limit_rows(flatten_data({"utilization": 5}))
        assert rows == [LimitRow(label="Utilization", percent=5.0)]

    def test_non_numeric_skipped(self):
        data = {"usage_note": "fine", "usage_enabled": False}
        assert build_limit_rows(flatten_data(data)) == []


class TestRenderBar:

    @pytest.mark.parametrize("percent, filled", [
        (0, 0),
        (50, 5),
        (99, 9),
        (100, 10),
        (150, 10),
        (-5, 0),
    ])
    def test_bar(self, percent, filled):
        bar = render_bar(percent, length=10)

        assert len(bar) == 10
        assert bar.count("█") == filled


class BlockingTracker:
    """get_usage blocks until released, like a slow API call."""

    def __init__(self):
        self.release = threading.Event()
        self.started = []
        self.finished = []

    def get_usage(self):
        try:
            asyncio.get_running_loop()
            on_event_loop = True
        except RuntimeError:
            on_event_loop = False
        self.started.append(on_event_loop)
        self.release.wait(timeout=10)
        self.finished.append(True)
        return Usage(raw={"five_hour": {"utilization": 42.0}})


async def wait_for(condition, pilot, attempts=100):
    for _ in range(attempts):
        if condition():
            return True
        await pilot.pause(0.02)
    return condition()


class TestDashboard:

    def test_keys_handled_while_fetch_pending(self):
        tracker = BlockingTracker()
        app = ClaudeLimitsTUI(tracker, interval=3600)

        async def scenario():
            async with app.run_test() as pilot:
                assert await wait_for(lambda: len(tracker.started) == 1, pilot)

                await pilot.press("r")
                assert await wait_for(lambda: len(tracker.started) == 2, pilot)
                assert tracker.finished == []

                await pilot.press("q")
                assert app.return_code == 0

            # App exited with both fetches still blocked
            assert tracker.finished == []
            tracker.release.set()

        asyncio.run(scenario())

        assert tracker.started == [False, False]

    def test_panel_updated_after_fetch(self):
        tracker = BlockingTracker()
        tracker.release.set()
        app = ClaudeLimitsTUI(tracker, interval=3600)
        updates = []

        async def scenario():
            async with app.run_test() as pilot:
                panel = app.query_one(LimitsPanel)
                original_update = panel.update

                def record_update(renderable=""):
                    updates.append(renderable)
                    original_update(renderable)

                panel.update = record_update
                await pilot.press("r")
                assert await wait_for(lambda: updates, pilot)

        asyncio.run(scenario())

        assert isinstance(updates[0], Panel)
        assert updates[0].border_style == "white"


class TestPanels:

    def test_error_panel(self):
        panel = error_panel(NoMatchError("x"))
        assert panel.border_style == "red"
        assert "no match found" in panel.renderable

    def test_limits_panel_without_rows(self):
        panel = limits_panel([])
        assert panel.border_style == "white"
