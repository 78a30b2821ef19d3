"""
MCP (Model Context Protocol) server exposing Claude usage tools over stdio.

Tools:
    get_usage        - full usage response as JSON
    get_usage_field  - fuzzy-matched single field ("five", "weekly", ...)

stdout carries the protocol, so all diagnostics go through logging (stderr).
"""

import json
import logging

from mcp.server.fastmcp import FastMCP

from usage_tracker import ClaudeUsageTracker

# Module-level logger
logger = logging.getLogger(__name__)

SERVER_NAME = "claude-limits"


class UsageTools:
    """Tool implementations, independent of the MCP transport."""

    def __init__(self, tracker: ClaudeUsageTracker):
        self.tracker = tracker

    def get_usage(self) -> str:
        """Get current Claude.ai usage for your Pro/Max subscription"""
        logger.debug("get_usage called")
        return self.tracker.get_usage().to_json()

    def get_usage_field(self, query: str) -> str:
        """Get a single Claude.ai usage field by fuzzy name, e.g. "five" or "weekly" """
        logger.debug(f"get_usage_field called with {query!r}")
        entry = self.tracker.query(query)
        return json.dumps({"path": entry.path, "key": entry.key, "value": entry.value})


def create_server(tracker: ClaudeUsageTracker) -> FastMCP:
    """Build the MCP server with the usage tools registered."""
    tools = UsageTools(tracker)
    server = FastMCP(SERVER_NAME)

    server.add_tool(
        tools.get_usage,
        name="get_usage",
        description="Get current Claude.ai usage for your Pro/Max subscription",
    )
    server.add_tool(
        tools.get_usage_field,
        name="get_usage_field",
        description=("Get a single Claude.ai usage value by fuzzy field name, "
                     "e.g. 'five' for the 5-hour utilization or 'weekly'"),
    )
    return server


def serve(tracker: ClaudeUsageTracker) -> None:
    """Run the MCP server on stdio until the client disconnects."""
    logger.info("Starting MCP server on stdio")
    create_server(tracker).run(transport="stdio")
