"""
Output formatting for usage data: table, JSON and single values.

Utilization-like numbers are coloured by threshold (>=95 red, >=80 yellow,
otherwise green). Colour is dropped automatically when stdout isn't a
terminal, or with --no-color / NO_COLOR.
"""

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fuzzy_match import FlatEntry
from limits_config import DEFAULT_FORMATS, FormatPreset
from oauth_usage_api import Usage

UTILIZATION_WORDS = ("utilization", "percent", "usage", "ratio")

DATETIME_SUFFIXES = (
    "_at", "_date", "_time", "_reset", "_start", "_end",
    "_expires", "_created", "_updated", "_timestamp",
)
DATETIME_KEYS = {
    "date", "time", "timestamp", "reset", "start", "end",
    "created", "updated", "expires", "datetime",
}

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

KEY_WIDTH = 22


def make_console(no_color: bool = False, stderr: bool = False) -> Console:
    """Console for CLI output."""
    return Console(no_color=no_color, highlight=False, soft_wrap=True, stderr=stderr)


def format_key(key: str) -> str:
    """five_hour_utilization -> Five Hour Utilization"""
    return " ".join(part[:1].upper() + part[1:] for part in key.split("_"))


def is_utilization_field(key: str) -> bool:
    """True for keys holding a percentage-style metric."""
    key_lower = key.lower()
    return any(word in key_lower for word in UTILIZATION_WORDS)


def utilization_color(value: float) -> str:
    """Rich colour for a utilization percentage."""
    if value >= 95:
        return "red"
    if value >= 80:
        return "yellow"
    return "green"


def format_number(value: float, key: str) -> Text:
    """Integral values without decimals, others with two; coloured if utilization."""
    if float(value).is_integer():
        number = str(int(value))
    else:
        number = f"{value:.2f}"

    if is_utilization_field(key):
        return Text(number, style=utilization_color(value))
    return Text(number)


def is_datetime_field(key: str) -> bool:
    """True if the key name suggests a timestamp."""
    key_lower = key.lower()
    return key_lower.endswith(DATETIME_SUFFIXES) or key_lower in DATETIME_KEYS


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; no offset means UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_string(value: str, key: str, formats: FormatPreset = DEFAULT_FORMATS) -> str:
    """Render timestamps in datetime-like fields in local time; pass anything else through."""
    if not is_datetime_field(key):
        return value

    # Calendar dates have no timezone to convert
    if _DATE_RE.match(value.strip()):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").strftime(formats.date)
        except ValueError:
            return value

    parsed = parse_timestamp(value)
    if parsed is not None:
        return parsed.astimezone().strftime(formats.datetime)

    return value


def _plain(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _label(indent: str, key: str, style: str = "") -> Text:
    return Text(f"{indent}{format_key(key)}:", style=style)


def _add_rows(table: Table, data: Mapping, indent: str, formats: FormatPreset) -> None:
    for key in sorted(data, key=str):
        value = data[key]
        key = str(key)

        if isinstance(value, Mapping):
            table.add_row(_label(indent, key, style="bold"), Text(""))
            _add_rows(table, value, indent + "  ", formats)
        elif isinstance(value, (list, tuple)):
            table.add_row(_label(indent, key, style="bold"), Text(""))
            for index, item in enumerate(value, start=1):
                if isinstance(item, Mapping):
                    table.add_row(Text(f"{indent}  [{index}]", style="cyan"), Text(""))
                    _add_rows(table, item, indent + "    ", formats)
                else:
                    table.add_row(Text(f"{indent}  • {_plain(item)}"), Text(""))
        elif value is None:
            continue
        elif isinstance(value, bool):
            table.add_row(_label(indent, key), Text(_plain(value)))
        elif isinstance(value, (int, float)):
            table.add_row(_label(indent, key), format_number(value, key))
        elif isinstance(value, str):
            if not value:
                continue
            table.add_row(_label(indent, key), Text(format_string(value, key, formats)))
        else:
            table.add_row(_label(indent, key), Text(_plain(value)))


def build_table(data: Mapping, formats: FormatPreset = DEFAULT_FORMATS) -> Table:
    """Two-column grid of every field, nested fields indented."""
    table = Table.grid(padding=(0, 1))
    table.add_column(min_width=KEY_WIDTH, no_wrap=True)
    table.add_column()
    _add_rows(table, data, "", formats)
    return table


def render_json(usage: Usage, console: Console) -> None:
    """Print the raw usage as indented JSON."""
    console.out(usage.to_json(), highlight=False)


def render_table(usage: Usage, console: Console,
                 formats: FormatPreset = DEFAULT_FORMATS) -> None:
    """Print usage as a table; non-object responses fall back to JSON."""
    if not isinstance(usage.raw, Mapping):
        render_json(usage, console)
        return

    panel = Panel(
        build_table(usage.raw, formats),
        title="[bold cyan]Claude.ai Usage",
        title_align="left",
        border_style="cyan",
        expand=False,
    )
    console.print(panel)


def render_value(entry: FlatEntry, console: Console) -> None:
    """Print just the value of a matched field."""
    value = entry.value
    if isinstance(value, bool):
        console.print(Text(_plain(value)))
    elif isinstance(value, (int, float)):
        console.print(format_number(value, entry.key))
    else:
        console.print(Text(_plain(value)))
