"""
Claude Code settings.json editing.

Only the statusLine entry is touched; every other setting is preserved as
loaded.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from usage_errors import ClaudeLimitsError, StatusLineExistsError

# Module-level logger
logger = logging.getLogger(__name__)

STATUS_LINE_KEY = "statusLine"


def default_user_settings_path() -> Path:
    """User-level settings: ~/.claude/settings.json"""
    return Path.home() / ".claude" / "settings.json"


def default_project_settings_path() -> Path:
    """Project-level settings: .claude/settings.json in the working directory."""
    return Path(".claude") / "settings.json"


class ClaudeSettings:
    """A Claude Code settings file."""

    def __init__(self, path: Path, data: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        self.data = data if data is not None else {}

    @classmethod
    def load(cls, path: Path) -> "ClaudeSettings":
        """Load settings; a missing file gives empty settings."""
        path = Path(path)
        if not path.exists():
            return cls(path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ClaudeLimitsError(f"failed to parse settings {path}: {e}") from e
        except OSError as e:
            raise ClaudeLimitsError(f"failed to read settings {path}: {e}") from e

        if not isinstance(data, dict):
            raise ClaudeLimitsError(f"failed to parse settings {path}: expected a JSON object")
        return cls(path, data)

    def has_status_line(self) -> bool:
        return STATUS_LINE_KEY in self.data

    def set_status_line(self, command: str, force: bool = False) -> None:
        """
        Point the status line at a command.

        Raises:
            StatusLineExistsError: A statusLine is already set and force is False
        """
        if self.has_status_line() and not force:
            raise StatusLineExistsError(f"statusLine already configured in {self.path}")

        self.data[STATUS_LINE_KEY] = {
            "type": "command",
            "command": command,
        }

    def save(self) -> None:
        """Write settings as indented JSON, creating parent directories."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                f.write(json.dumps(self.data, indent=2) + "\n")
        except OSError as e:
            raise ClaudeLimitsError(f"failed to write settings {self.path}: {e}") from e

        logger.debug(f"Saved Claude Code settings: {self.path}")
