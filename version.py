"""claude-limits version information."""

__version__ = "1.2.0"
__title__ = "claude-limits"
__description__ = "Check Claude.ai usage limits from the terminal, a status line, or an MCP client"
__author__ = "claude-limits Contributors"
__license__ = "MIT"

# v1.2.0 - Watch dashboard
# - New `watch` subcommand: live textual dashboard of every utilization field
# - Reset times shown next to each bar in local time

# v1.1.0 - Status line install
# - `install-script` writes the bash/PowerShell status line script
# - Configures statusLine in Claude Code user or project settings
# - Query argument works without the `limits` subcommand

# v1.0.0 - OAuth API rewrite
# - Reads Claude Code OAuth credentials instead of browser cookies
# - Fuzzy field queries against the raw usage response
# - TTL cache so status line polling doesn't hammer the API
