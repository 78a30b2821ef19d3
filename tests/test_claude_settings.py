"""Tests for Claude Code settings.json editing."""

import json

import pytest

from claude_settings import STATUS_LINE_KEY, ClaudeSettings
from usage_errors import ClaudeLimitsError, StatusLineExistsError


class TestClaudeSettings:

    def test_load_missing_file(self, tmp_path):
        settings = ClaudeSettings.load(tmp_path / "settings.json")

        assert settings.data == {}
        assert not settings.has_status_line()

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{")

        with pytest.raises(ClaudeLimitsError):
            ClaudeSettings.load(path)

    def test_load_invalid_utf8(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_bytes(b'{"model": "\xff"}')

        with pytest.raises(ClaudeLimitsError):
            ClaudeSettings.load(path)

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[]")

        with pytest.raises(ClaudeLimitsError):
            ClaudeSettings.load(path)

    def test_set_status_line(self, tmp_path):
        settings = ClaudeSettings(tmp_path / "settings.json")

        settings.set_status_line("/usr/local/bin/statusline.sh")

        assert settings.data[STATUS_LINE_KEY] == {
            "type": "command",
            "command": "/usr/local/bin/statusline.sh",
        }

    def test_existing_status_line_conflicts(self, tmp_path):
        settings = ClaudeSettings(tmp_path / "settings.json",
                                  {STATUS_LINE_KEY: {"type": "command", "command": "old"}})

        with pytest.raises(StatusLineExistsError):
            settings.set_status_line("new")

        assert settings.data[STATUS_LINE_KEY]["command"] == "old"

    def test_force_replaces_status_line(self, tmp_path):
        settings = ClaudeSettings(tmp_path / "settings.json",
                                  {STATUS_LINE_KEY: {"type": "command", "command": "old"}})

        settings.set_status_line("new", force=True)

        assert settings.data[STATUS_LINE_KEY]["command"] == "new"

    def test_save_preserves_other_settings(self, tmp_path):
        path = tmp_path / ".claude" / "settings.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"model": "opus", "permissions": {"allow": ["Bash"]}}))

        settings = ClaudeSettings.load(path)
        settings.set_status_line("script.sh")
        settings.save()

        saved = json.loads(path.read_text())
        assert saved["model"] == "opus"
        assert saved["permissions"] == {"allow": ["Bash"]}
        assert saved[STATUS_LINE_KEY]["command"] == "script.sh"

    def test_save_creates_directories(self, tmp_path):
        path = tmp_path / "project" / ".claude" / "settings.json"

        settings = ClaudeSettings(path)
        settings.set_status_line("script.sh")
        settings.save()

        text = path.read_text()
        assert text.endswith("\n")
        assert text.startswith("{\n  ")
