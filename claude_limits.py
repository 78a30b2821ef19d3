#!/usr/bin/env python3
"""
claude-limits - check Claude.ai usage limits for Pro/Max subscriptions

Usage:
    claude-limits                      # table of all usage fields
    claude-limits five                 # value of the best matching field
    claude-limits --format json        # raw response
    claude-limits serve                # MCP server on stdio
    claude-limits install-script bash ~/.local/bin/claude-limits-statusline.sh
    claude-limits watch                # live dashboard

Authentication uses the OAuth credentials Claude Code stores in
~/.claude/.credentials.json; authenticate with Claude Code first.
"""

import argparse
import logging
import sys
from typing import List, Optional

from claude_credentials import load_credentials
from limits_config import load_config_or_default
from statusline_scripts import get_script, install_script, list_scripts
from usage_errors import ClaudeLimitsError
from usage_formatter import make_console, render_json, render_table, render_value
from usage_tracker import DEFAULT_CACHE_TTL, ClaudeUsageTracker
from version import __description__, __title__, __version__

# Module-level logger
logger = logging.getLogger(__name__)

SUBCOMMANDS = ("limits", "serve", "install-script", "watch")
VALUE_OPTIONS = ("--config", "--format", "--cache")
ROOT_OPTIONS = ("-h", "--help", "--version")


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr; stdout is reserved for output (and the MCP protocol)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--config',
        help='Config file path (default: ~/.config/claude-limits/config.yaml)'
    )
    common.add_argument(
        '--format',
        choices=('table', 'json'),
        default='table',
        help='Output format (default: table)'
    )
    common.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output on stderr'
    )
    common.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )
    common.add_argument(
        '--cache',
        type=int,
        default=DEFAULT_CACHE_TTL,
        metavar='SECONDS',
        help=f'Cache TTL in seconds, 0 to disable (default: {DEFAULT_CACHE_TTL})'
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()

    parser = argparse.ArgumentParser(
        prog='claude-limits',
        description=__description__,
        epilog="A query without a subcommand runs 'limits', e.g. 'claude-limits five'.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'{__title__} {__version__}'
    )
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    limits = subparsers.add_parser(
        'limits',
        parents=[common],
        help='Display current usage',
        description=(
            'Fetch and display your current Claude.ai usage.\n\n'
            'With a query, fuzzy matches field names and prints just the value:\n'
            '  claude-limits limits five   ->  five_hour_utilization'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    limits.add_argument('query', nargs='?', help='Field to look up, e.g. "five" or "weekly"')
    limits.set_defaults(handler=run_limits)

    serve = subparsers.add_parser(
        'serve',
        parents=[common],
        help='Start MCP server on stdio',
        description='Start an MCP (Model Context Protocol) server that exposes usage tools.'
    )
    serve.set_defaults(handler=run_serve)

    install = subparsers.add_parser(
        'install-script',
        parents=[common],
        help='Install a status line script for Claude Code',
        description=(
            "Install an embedded status line script and configure Claude Code's\n"
            'statusLine setting to run it.\n\n'
            'Examples:\n'
            '  claude-limits install-script bash ~/.local/bin/claude-limits-statusline.sh\n'
            '  claude-limits install-script powershell ~/bin/claude-limits-statusline.ps1\n'
            '  claude-limits install-script --project bash .local/bin/claude-limits-statusline.sh\n'
            '  claude-limits install-script --list'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    install.add_argument('name', nargs='?', help='Script name (bash or powershell)')
    install.add_argument('path', nargs='?', help='Where to write the script')
    install.add_argument('--force', action='store_true',
                         help='Overwrite existing file and statusLine config')
    install.add_argument('--list', action='store_true', help='List available scripts')
    install.add_argument('--project', action='store_true',
                         help='Configure statusLine in project settings (.claude/settings.json)')
    install.set_defaults(handler=run_install_script)

    watch = subparsers.add_parser(
        'watch',
        parents=[common],
        help='Live dashboard of usage limits'
    )
    watch.add_argument('--interval', type=int, default=30, metavar='SECONDS',
                       help='Refresh interval in seconds (default: 30)')
    watch.set_defaults(handler=run_watch)

    return parser


def route_argv(argv: List[str]) -> List[str]:
    """
    Put the subcommand first, defaulting to 'limits'.

    Lets common options come before the subcommand and lets a bare query
    stand in for 'limits <query>'.
    """
    argv = list(argv)
    expects_value = False

    for index, arg in enumerate(argv):
        if expects_value:
            expects_value = False
            continue
        if arg in VALUE_OPTIONS:
            expects_value = True
            continue
        if arg in ROOT_OPTIONS:
            return argv
        if arg.startswith("-"):
            continue
        if arg in SUBCOMMANDS:
            return [arg] + argv[:index] + argv[index + 1:]
        break

    return ["limits"] + argv


def make_tracker(args) -> ClaudeUsageTracker:
    return ClaudeUsageTracker(cache_ttl=max(args.cache, 0))


def run_limits(args) -> int:
    console = make_console(no_color=args.no_color)
    tracker = make_tracker(args)

    if args.query is not None:
        render_value(tracker.query(args.query), console)
        return 0

    usage = tracker.get_usage()
    if args.format == 'json':
        render_json(usage, console)
    else:
        formats = load_config_or_default(args.config).resolved_formats()
        render_table(usage, console, formats)
    return 0


def run_serve(args) -> int:
    from usage_mcp_server import serve

    # Fail fast before the client connects
    creds = load_credentials()
    print(f"Starting MCP server (subscription: {creds.subscription_type or 'unknown'})",
          file=sys.stderr)

    serve(make_tracker(args))
    return 0


def run_install_script(args) -> int:
    console = make_console(no_color=args.no_color)

    if args.list:
        console.print("Available scripts:\n")
        for name in list_scripts():
            console.print(f"  {name:<12} {get_script(name).description}")
        console.print("\nUsage: claude-limits install-script <name> <path>")
        return 0

    if not args.name or not args.path:
        raise ClaudeLimitsError("requires exactly 2 arguments: <name> <path>")

    settings_path = install_script(args.name, args.path, force=args.force, project=args.project)
    script = get_script(args.name)
    scope = "project" if args.project else "user"
    console.print(f"Installed {script.filename} to {args.path}")
    console.print(f"Configured statusLine in {scope} settings ({settings_path})")
    return 0


def run_watch(args) -> int:
    from claude_tui import run_dashboard

    formats = load_config_or_default(args.config).resolved_formats()
    run_dashboard(make_tracker(args), interval=max(args.interval, 1), formats=formats)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the claude-limits command."""
    parser = build_parser()
    args = parser.parse_args(route_argv(sys.argv[1:] if argv is None else argv))

    setup_logging(verbose=args.verbose)

    try:
        return args.handler(args)
    except ClaudeLimitsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
