#!/usr/bin/env python3
"""
Dev Environment Readiness - Developer Launcher

Starts the readiness API, checks local prerequisites, or watches a running
backend's setup progress from the terminal.

Usage:
    python run.py                                # Start the API (localhost:3003)
    python run.py --host 0.0.0.0 --reload        # Network accessible, auto-reload
    python run.py --check-only                   # Scan prerequisites and exit
    python run.py --watch http://localhost:3003  # Follow setup progress

Exit codes for --check-only:
    0  every required prerequisite is installed
    1  at least one required prerequisite is missing
"""

import asyncio
import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

BACKEND_DIR = Path(__file__).resolve().parent / 'backend'

# Ensure the backend package is importable when run from a source checkout
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.config import settings  # noqa: E402
from app.core.probes import SubprocessRunner  # noqa: E402
from app.core.readiness import prerequisites_met  # noqa: E402
from app.models.setup import Prerequisite, PrerequisiteState, SetupReadiness, StepState  # noqa: E402
from app.services.dashboard_poller import (  # noqa: E402
    DashboardApiClient,
    PollState,
    setup_status_poller,
)
from app.services.prerequisites import PrerequisiteAggregator  # noqa: E402

DEFAULT_HOST = 'localhost'
DEFAULT_BACKEND_PORT = 3003


# ANSI color codes
class Color:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'
    GRAY = '\033[90m'


def colorize(text: str, color: str, enabled: bool = True) -> str:
    """Apply color to text if colors are enabled."""
    if not enabled:
        return text
    return f"{color}{text}{Color.RESET}"


# ============================================================================
# Prerequisite scan
# ============================================================================

def format_prerequisite_table(prerequisites: List[Prerequisite], color_enabled: bool = True) -> List[str]:
    """Render a dotted-leader table, one line per prerequisite."""
    if not prerequisites:
        return []

    max_name = max(len(p.name) for p in prerequisites)
    lines = []
    for p in prerequisites:
        dots = '.' * (max_name + 4 - len(p.name))
        name_part = f'    {p.name} {dots}'
        ver_part = f'{(p.version or "-")[:28]:<30}'

        if p.status == PrerequisiteState.INSTALLED:
            state_part = colorize(p.status.value, Color.GREEN, color_enabled)
        elif p.required:
            state_part = colorize(p.status.value.upper(), Color.RED, color_enabled)
        else:
            state_part = colorize(p.status.value, Color.YELLOW, color_enabled)

        kind = '' if p.required else colorize(' (optional)', Color.GRAY, color_enabled)
        lines.append(f'{name_part} {ver_part}{state_part}{kind}')
    return lines


async def check_prerequisites(color_enabled: bool = True) -> bool:
    """Scan prerequisites, print the table and return whether all required are met."""
    aggregator = PrerequisiteAggregator(
        SubprocessRunner(),
        cloud_override=settings.cloud_provider,
        command_timeout=settings.command_probe_timeout_seconds,
    )
    prerequisites = await aggregator.get_prerequisites()

    print(f"\n{colorize('  Prerequisites:', Color.BOLD, color_enabled)}\n")
    for line in format_prerequisite_table(prerequisites, color_enabled):
        print(line)

    missing = [
        p.name for p in prerequisites
        if p.required and p.status != PrerequisiteState.INSTALLED
    ]
    print()
    if missing:
        print(colorize(
            f'  {len(missing)} required missing: {", ".join(missing)}',
            Color.YELLOW,
            color_enabled,
        ))
        print()
    return prerequisites_met(prerequisites)


# ============================================================================
# Watch mode
# ============================================================================

def format_readiness_line(state: PollState[SetupReadiness], color_enabled: bool = True) -> str:
    """One status line for the current view of setup progress."""
    if state.checking:
        return colorize('  checking...', Color.GRAY, color_enabled)
    if state.data is None:
        return colorize(f'  unavailable: {state.error}', Color.RED, color_enabled)

    readiness = state.data
    pending = [s.name for s in readiness.steps if s.status != StepState.COMPLETED]
    line = (
        f'  {readiness.completed_steps}/{readiness.total_steps} steps '
        f'({readiness.progress_percentage:.0f}%)'
    )
    if readiness.is_complete:
        line = colorize(f'{line} - environment ready', Color.GREEN, color_enabled)
    elif pending:
        line = f'{line} - waiting on: {", ".join(pending)}'
    if not readiness.all_prerequisites_met:
        line += colorize(' [prerequisites missing]', Color.YELLOW, color_enabled)
    if state.stale:
        line += colorize(f' [stale: {state.error}]', Color.GRAY, color_enabled)
    return line


async def watch(base_url: str, interval: float, color_enabled: bool = True,
                stop: Optional[asyncio.Event] = None) -> None:
    """Poll a running backend until interrupted."""
    stop = stop or asyncio.Event()

    def on_update(state: PollState[SetupReadiness]) -> None:
        print(format_readiness_line(state, color_enabled), flush=True)

    async with DashboardApiClient(base_url) as client:
        poller = setup_status_poller(client, interval=interval, on_update=on_update)
        print(colorize(f'  Watching {base_url} every {interval:g}s (Ctrl+C to stop)',
                       Color.CYAN, color_enabled))
        await poller.run(stop)


# ============================================================================
# Serve mode
# ============================================================================

def build_uvicorn_command(host: str, port: int, reload: bool) -> List[str]:
    cmd = [
        sys.executable,
        '-m', 'uvicorn',
        'app.main:app',
        '--port', str(port),
        '--host', host,
    ]
    if reload:
        cmd.append('--reload')
    return cmd


def serve(host: str, port: int, reload: bool, color_enabled: bool = True) -> int:
    """Run the API in the foreground; returns uvicorn's exit code."""
    print(f"\n{colorize('=' * 60, Color.CYAN, color_enabled)}")
    print(colorize(f'  Readiness API on http://{host}:{port}', Color.CYAN + Color.BOLD, color_enabled))
    print(f"{colorize('=' * 60, Color.CYAN, color_enabled)}\n")
    return subprocess.call(build_uvicorn_command(host, port, reload), cwd=str(BACKEND_DIR))


# ============================================================================
# Main Entry Point
# ============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description='Dev Environment Readiness - Developer Launcher',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                                # Start the API
  python run.py --check-only                   # Scan prerequisites
  python run.py --watch http://localhost:3003  # Follow setup progress
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        '--check-only',
        action='store_true',
        help='Scan prerequisites only, do not start the API'
    )
    mode_group.add_argument(
        '--watch',
        metavar='URL',
        default=None,
        help='Poll the setup status of a running backend at URL'
    )

    parser.add_argument(
        '--host',
        type=str,
        default=DEFAULT_HOST,
        help=f'Host to bind the API to (default: {DEFAULT_HOST})'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=DEFAULT_BACKEND_PORT,
        help=f'API port (default: {DEFAULT_BACKEND_PORT})'
    )
    parser.add_argument(
        '--reload',
        action='store_true',
        help='Restart the API when source files change'
    )
    parser.add_argument(
        '--interval',
        type=float,
        default=settings.setup_status_poll_interval,
        help='Polling interval in seconds for --watch (default: %(default)s)'
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = create_argument_parser().parse_args(argv)
    color_enabled = not args.no_color and sys.stdout.isatty()

    if args.check_only:
        ok = asyncio.run(check_prerequisites(color_enabled))
        return 0 if ok else 1

    if args.watch:
        try:
            asyncio.run(watch(args.watch, args.interval, color_enabled))
        except KeyboardInterrupt:
            pass
        return 0

    return serve(args.host, args.port, args.reload, color_enabled)


if __name__ == '__main__':
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        # Graceful exit on Ctrl+C
        sys.exit(0)
