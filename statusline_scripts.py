"""
Embedded Claude Code status line scripts and their installer.

Claude Code pipes a JSON description of the session to the status line
command on stdin and shows whatever it prints. These scripts read the
context window from that JSON and call claude-limits for the 5-hour and
weekly utilization, printing e.g.:

    5h: 42% @ 03:00 PM | wk: 17% @ Thu 09:00 AM | ctx: 8%
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from claude_settings import (
    ClaudeSettings,
    default_project_settings_path,
    default_user_settings_path,
)
from usage_errors import ScriptInstallError, StatusLineExistsError

# Module-level logger
logger = logging.getLogger(__name__)


BASH_SCRIPT = r"""#!/bin/bash
# Claude Code status line: Claude.ai usage limits via claude-limits

# Status line JSON from Claude Code
INPUT=$(cat)

json_field() {
    echo "$INPUT" | jq -r "$1" 2>/dev/null
}

# Context window utilization straight from stdin, when present
CONTEXT_SIZE=$(json_field '.context_window.context_window_size // empty')
CURRENT_USAGE=$(json_field '.context_window.current_usage // empty')

if [[ -n "$CURRENT_USAGE" && "$CURRENT_USAGE" != "null" ]]; then
    TOTAL=0
    for FIELD in input_tokens output_tokens cache_creation_input_tokens cache_read_input_tokens; do
        COUNT=$(json_field ".context_window.current_usage.${FIELD} // 0")
        [[ "$COUNT" =~ ^[0-9]+$ ]] || COUNT=0
        TOTAL=$((TOTAL + COUNT))
    done
    if [[ "$CONTEXT_SIZE" =~ ^[0-9]+$ && "$CONTEXT_SIZE" -gt 0 ]]; then
        STDIN_CONTEXT=$((TOTAL * 100 / CONTEXT_SIZE))
    fi
fi

RED='\033[31m'
YELLOW='\033[33m'
GREEN='\033[32m'
RESET='\033[0m'

# date(1) formats: "+%H:%M" for 24-hour clocks
TIME_FORMAT="${CLAUDE_LIMITS_TIME_FORMAT:-+%I:%M %p}"
DATETIME_FORMAT="${CLAUDE_LIMITS_DATETIME_FORMAT:-+%a %I:%M %p}"

colorize() {
    local value="$1"
    if [[ "$value" == "?" ]]; then
        echo "$value"
        return
    fi
    local whole="${value%.*}"
    if [[ "$whole" -ge 95 ]]; then
        echo -e "${RED}${value}${RESET}"
    elif [[ "$whole" -ge 80 ]]; then
        echo -e "${YELLOW}${value}${RESET}"
    else
        echo -e "${GREEN}${value}${RESET}"
    fi
}

format_time() {
    local stamp="$1"
    local format="$2"

    if [[ -z "$stamp" || "$stamp" == "?" ]]; then
        echo "?"
        return
    fi

    if date --version >/dev/null 2>&1; then
        # GNU date
        date -d "$stamp" "$format" 2>/dev/null || echo "?"
    else
        # BSD date
        local epoch
        epoch=$(date -j -f "%Y-%m-%dT%H:%M:%S%z" "${stamp//Z/+0000}" '+%s' 2>/dev/null) ||
        epoch=$(date -j -f "%Y-%m-%dT%H:%M:%SZ" "$stamp" '+%s' 2>/dev/null)
        if [[ -n "$epoch" ]]; then
            date -j -f '%s' "$epoch" "$format" 2>/dev/null || echo "?"
        else
            echo "?"
        fi
    fi
}

CLAUDE_LIMITS="${CLAUDE_LIMITS_PATH:-$(command -v claude-limits 2>/dev/null)}"
if [[ -z "$CLAUDE_LIMITS" ]]; then
    echo "claude-limits: not found"
    exit 1
fi

# Full field names keep the fuzzy matcher unambiguous
FIVE_HOUR=$("$CLAUDE_LIMITS" five_hour_utilization 2>/dev/null)
WEEKLY=$("$CLAUDE_LIMITS" seven_day_utilization 2>/dev/null)
CONTEXT="${STDIN_CONTEXT:-$("$CLAUDE_LIMITS" context_utilization 2>/dev/null)}"
FIVE_HOUR_RESET=$("$CLAUDE_LIMITS" five_hour_reset 2>/dev/null)
WEEKLY_RESET=$("$CLAUDE_LIMITS" seven_day_reset 2>/dev/null)

FIVE_HOUR=${FIVE_HOUR:-"?"}
WEEKLY=${WEEKLY:-"?"}
CONTEXT=${CONTEXT:-"?"}

FIVE_HOUR_AT=$(format_time "$FIVE_HOUR_RESET" "$TIME_FORMAT")
WEEKLY_AT=$(format_time "$WEEKLY_RESET" "$DATETIME_FORMAT")

echo -e "5h: $(colorize "$FIVE_HOUR")% @ ${FIVE_HOUR_AT} | wk: $(colorize "$WEEKLY")% @ ${WEEKLY_AT} | ctx: $(colorize "$CONTEXT")%"
"""


POWERSHELL_SCRIPT = r"""# Claude Code status line: Claude.ai usage limits via claude-limits

$InputJson = $input | Out-String
$StdinContext = $null

try {
    $Status = $InputJson | ConvertFrom-Json
    $Window = $Status.context_window
    if ($Window -and $Window.current_usage -and $Window.context_window_size -gt 0) {
        $Usage = $Window.current_usage
        $Total = [int64]$Usage.input_tokens + [int64]$Usage.output_tokens +
                 [int64]$Usage.cache_creation_input_tokens + [int64]$Usage.cache_read_input_tokens
        $StdinContext = [math]::Floor($Total * 100 / [int64]$Window.context_window_size)
    }
} catch {
    $StdinContext = $null
}

$Esc = [char]27
$Red = "$Esc[31m"
$Yellow = "$Esc[33m"
$Green = "$Esc[32m"
$Reset = "$Esc[0m"

# .NET format strings: "HH:mm" for 24-hour clocks
$TimeFormat = if ($env:CLAUDE_LIMITS_TIME_FORMAT) { $env:CLAUDE_LIMITS_TIME_FORMAT } else { "hh:mm tt" }
$DateTimeFormat = if ($env:CLAUDE_LIMITS_DATETIME_FORMAT) { $env:CLAUDE_LIMITS_DATETIME_FORMAT } else { "ddd hh:mm tt" }

function Format-Percent([string]$Value) {
    if (-not $Value -or $Value -eq "?") { return "?" }
    $Number = 0.0
    if (-not [double]::TryParse($Value, [ref]$Number)) { return $Value }
    if ($Number -ge 95) { return "$Red$Value$Reset" }
    if ($Number -ge 80) { return "$Yellow$Value$Reset" }
    return "$Green$Value$Reset"
}

function Format-ResetTime([string]$Stamp, [string]$Format) {
    if (-not $Stamp) { return "?" }
    try {
        return ([datetime]::Parse($Stamp)).ToLocalTime().ToString($Format)
    } catch {
        return "?"
    }
}

$ClaudeLimits = $env:CLAUDE_LIMITS_PATH
if (-not $ClaudeLimits) {
    $Command = Get-Command claude-limits -ErrorAction SilentlyContinue
    if ($Command) { $ClaudeLimits = $Command.Source }
}
if (-not $ClaudeLimits) {
    Write-Output "claude-limits: not found"
    exit 1
}

function Get-Limit([string]$Query) {
    $Value = & $ClaudeLimits $Query 2>$null
    if ($LASTEXITCODE -ne 0) { return $null }
    return ($Value | Out-String).Trim()
}

$FiveHour = Get-Limit "five_hour_utilization"
$Weekly = Get-Limit "seven_day_utilization"
$Context = if ($null -ne $StdinContext) { "$StdinContext" } else { Get-Limit "context_utilization" }
$FiveHourAt = Format-ResetTime (Get-Limit "five_hour_reset") $TimeFormat
$WeeklyAt = Format-ResetTime (Get-Limit "seven_day_reset") $DateTimeFormat

Write-Output ("5h: {0}% @ {1} | wk: {2}% @ {3} | ctx: {4}%" -f `
    (Format-Percent $FiveHour), $FiveHourAt, (Format-Percent $Weekly), $WeeklyAt, (Format-Percent $Context))
"""


@dataclass(frozen=True)
class Script:
    """An installable status line script."""
    name: str
    filename: str
    description: str
    content: str
    executable: bool = False


AVAILABLE = {
    "bash": Script(
        name="bash",
        filename="claude-limits-statusline.sh",
        description="Bash status line script for Claude Code",
        content=BASH_SCRIPT,
        executable=True,
    ),
    "powershell": Script(
        name="powershell",
        filename="claude-limits-statusline.ps1",
        description="PowerShell status line script for Claude Code",
        content=POWERSHELL_SCRIPT,
    ),
}


def get_script(name: str) -> Optional[Script]:
    """Script by name, or None."""
    return AVAILABLE.get(name)


def list_scripts() -> List[str]:
    """Sorted script names."""
    return sorted(AVAILABLE)


def settings_path_for(project: bool) -> Path:
    return default_project_settings_path() if project else default_user_settings_path()


def install_script(name: str, destination: Path, force: bool = False,
                   project: bool = False, settings_path: Optional[Path] = None) -> Path:
    """
    Write a status line script and point Claude Code's statusLine at it.

    Nothing is written if the destination exists or a statusLine is already
    configured, unless force is set.

    Args:
        name: Script name ("bash" or "powershell")
        destination: Where to write the script
        force: Overwrite the file and any existing statusLine
        project: Configure .claude/settings.json instead of ~/.claude/settings.json
        settings_path: Explicit settings file, overrides project

    Returns:
        Path of the settings file that was updated
    """
    script = get_script(name)
    if script is None:
        raise ScriptInstallError(
            f"unknown script: {name}\n"
            "Run 'claude-limits install-script --list' to see available scripts"
        )

    destination = Path(destination).expanduser()
    if destination.exists() and not force:
        raise ScriptInstallError(f"file already exists: {destination}\nUse --force to overwrite")

    settings_path = Path(settings_path) if settings_path else settings_path_for(project)
    settings = ClaudeSettings.load(settings_path)
    if settings.has_status_line() and not force:
        raise StatusLineExistsError(
            f"statusLine already configured in {settings_path}\nUse --force to overwrite"
        )

    mode = 0o755 if script.executable and sys.platform != "win32" else 0o644
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, 'w', newline="\n") as f:
            f.write(script.content)
        os.chmod(destination, mode)
    except OSError as e:
        raise ScriptInstallError(f"failed to write script: {e}") from e

    logger.info(f"Installed {script.filename} to {destination}")

    settings.set_status_line(str(destination), force=force)
    settings.save()
    return settings_path
