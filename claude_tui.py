#!/usr/bin/env python3
"""
claude-limits watch - live terminal dashboard of usage limits
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Footer, Header, Static
from textual.worker import get_current_worker

from fuzzy_match import FlatEntry, flatten_data
from limits_config import DEFAULT_FORMATS, FormatPreset
from usage_errors import ClaudeLimitsError
from usage_formatter import format_key, format_string, is_utilization_field, utilization_color
from usage_tracker import ClaudeUsageTracker

BAR_LENGTH = 40
DEFAULT_INTERVAL = 30  # seconds


@dataclass
class LimitRow:
    """One utilization bar on the dashboard."""
    label: str
    percent: float
    resets_at: Optional[str] = None


def build_limit_rows(entries: List[FlatEntry],
                     formats: FormatPreset = DEFAULT_FORMATS) -> List[LimitRow]:
    """
    Pick the utilization fields out of a flattened usage document.

    five_hour_utilization -> "Five Hour", with the reset time taken from
    five_hour_resets_at when the response has one.
    """
    by_path = {entry.path: entry for entry in entries}
    rows = []

    for entry in entries:
        if not is_utilization_field(entry.key):
            continue
        if isinstance(entry.value, bool) or not isinstance(entry.value, (int, float)):
            continue

        prefix = entry.path[:-len(entry.key)].rstrip("_")
        label = format_key(prefix) if prefix else format_key(entry.key)

        resets_at = None
        reset_entry = by_path.get(f"{prefix}_resets_at" if prefix else "resets_at")
        if reset_entry is not None and isinstance(reset_entry.value, str):
            resets_at = format_string(reset_entry.value, reset_entry.key, formats)

        rows.append(LimitRow(label=label, percent=float(entry.value), resets_at=resets_at))

    return rows


def render_bar(percent: float, length: int = BAR_LENGTH) -> str:
    """Block bar, visually capped at 100%."""
    filled = max(0, min(int((percent / 100) * length), length))
    return "█" * filled + "░" * (length - filled)


def error_panel(error: Exception) -> Panel:
    """Shown in place of the bars when usage can't be fetched."""
    return Panel(
        f"[bold red]Could not fetch usage[/bold red]\n[dim]{error}[/dim]",
        title="[bold white]Claude.ai Usage",
        border_style="red"
    )


def limits_panel(rows: List[LimitRow]) -> Panel:
    """Utilization bars with reset times, under a last-updated header."""
    time_str = datetime.now().strftime("%Y-%m-%d %I:%M:%S %p")

    header = Table.grid(expand=True)
    header.add_column(justify="left")
    header.add_column(justify="right")
    header.add_row("[bold cyan]Usage limits[/bold cyan]", f"[dim]Last Updated: {time_str}[/dim]")

    output = [header]
    if not rows:
        output.append("[dim]No utilization fields in the usage response[/dim]")

    for row in rows:
        color = utilization_color(row.percent)
        output.append("")
        output.append(Text(row.label, style="bold"))
        output.append(f"[{color}]{render_bar(row.percent)}[/{color}] {row.percent:.0f}% used")
        if row.resets_at:
            output.append(f"[dim]Resets {row.resets_at}[/dim]")

    return Panel(
        Group(*output),
        title="[bold white]Claude.ai Usage",
        border_style="white"
    )


class LimitsPanel(Static):
    """Utilization bars for every limit in the usage response."""

    def __init__(self, tracker: ClaudeUsageTracker, interval: int = DEFAULT_INTERVAL,
                 formats: FormatPreset = DEFAULT_FORMATS):
        super().__init__()
        self.tracker = tracker
        self.interval = interval
        self.formats = formats

    def on_mount(self) -> None:
        """Set up auto-refresh."""
        self.update("[dim]Fetching usage...[/dim]")
        self.refresh_data()
        self.set_interval(self.interval, self.refresh_data)

    @work(thread=True, exclusive=True)
    def refresh_data(self) -> None:
        """Fetch usage off the event loop and redraw the bars."""
        try:
            usage = self.tracker.get_usage()
            panel = limits_panel(build_limit_rows(flatten_data(usage.as_mapping()), self.formats))
        except ClaudeLimitsError as e:
            panel = error_panel(e)

        # Superseded by a newer refresh, or the app is shutting down
        if get_current_worker().is_cancelled:
            return
        self.app.call_from_thread(self.update, panel)


class ClaudeLimitsTUI(App):
    """Live dashboard of Claude.ai usage limits."""

    CSS = """
    Screen {
        background: $surface;
    }

    Static {
        margin: 0;
        padding: 0;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(self, tracker: ClaudeUsageTracker, interval: int = DEFAULT_INTERVAL,
                 formats: FormatPreset = DEFAULT_FORMATS):
        super().__init__()
        self.tracker = tracker
        self.interval = interval
        self.formats = formats

    def compose(self) -> ComposeResult:
        """Create layout."""
        yield Header(show_clock=True)
        with Vertical():
            yield LimitsPanel(self.tracker, self.interval, self.formats)
        yield Footer()

    def action_refresh(self) -> None:
        """Refetch usage now."""
        for widget in self.query(LimitsPanel):
            widget.refresh_data()


def run_dashboard(tracker: ClaudeUsageTracker, interval: int = DEFAULT_INTERVAL,
                  formats: FormatPreset = DEFAULT_FORMATS) -> None:
    """Run the dashboard until the user quits."""
    ClaudeLimitsTUI(tracker, interval=interval, formats=formats).run()
