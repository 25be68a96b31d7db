"""Dependency probes.

Two families live here:

* command probes, which report whether a CLI tool is installed and its version;
* health probes, which time a single check against a network service and
  enforce a hard timeout.

Neither family raises to its caller. Every failure mode (tool missing, spawn
error, connection refused, timeout) is folded into the returned result.
"""

import asyncio
import logging
import shutil
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

import httpx
import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.probe_policy import ProbeStrategy

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "timeout"

# A health check returns None when healthy, a warning message when the
# service answers but reports partial health, and raises when unreachable.
HealthCheck = Callable[[], Awaitable[str | None]]


# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str
    exit_code: int


class CommandRunner(Protocol):
    def which(self, command: str) -> str | None:
        """Resolve *command* on PATH without executing it."""
        ...

    async def run(self, argv: Sequence[str], timeout: float) -> CommandOutput:
        ...


class SubprocessRunner:
    """CommandRunner backed by ``asyncio`` subprocesses."""

    def which(self, command: str) -> str | None:
        return shutil.which(command)

    async def run(self, argv: Sequence[str], timeout: float) -> CommandOutput:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except (TimeoutError, asyncio.CancelledError):
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        return CommandOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode if process.returncode is not None else -1,
        )


@dataclass(frozen=True)
class CommandSpec:
    """How to find a tool and ask it for its version."""

    command: str
    version_args: tuple[str, ...] = ("--version",)
    first_line_only: bool = True

    def parse_version(self, stdout: str) -> str | None:
        output = stdout.strip()
        if self.first_line_only:
            output = output.splitlines()[0].strip() if output else ""
        return output or None


@dataclass(frozen=True)
class ProbeResult:
    installed: bool
    version: str | None = None
    detail: str | None = None


async def probe_command(
    spec: CommandSpec,
    runner: CommandRunner,
    strategy: ProbeStrategy = ProbeStrategy.SPAWN,
    timeout: float = 5.0,
) -> ProbeResult:
    """Report whether ``spec.command`` is installed, with its version if known."""
    if strategy is ProbeStrategy.ASSUME_INSTALLED:
        return ProbeResult(installed=True, detail="assumed installed on host")

    try:
        path = runner.which(spec.command)
    except Exception as exc:
        logger.debug("PATH lookup for %s failed", spec.command, exc_info=True)
        return ProbeResult(installed=False, detail=str(exc) or type(exc).__name__)

    if path is None:
        return ProbeResult(installed=False, detail="not found on PATH")

    # The tool exists from here on; a broken version command only loses the version.
    version: str | None = None
    try:
        output = await runner.run([path, *spec.version_args], timeout)
        if output.exit_code == 0:
            version = spec.parse_version(output.stdout)
        else:
            logger.debug(
                "%s version check exited %d: %s",
                spec.command, output.exit_code, output.stderr.strip(),
            )
    except Exception:
        logger.debug("Version check for %s failed", spec.command, exc_info=True)

    return ProbeResult(installed=True, version=version)


# ---------------------------------------------------------------------------
# Health probes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HealthProbeResult:
    healthy: bool
    response_time_ms: float
    error: str | None = None
    warning: str | None = None


def _discard(task: asyncio.Future) -> None:
    # Retrieve the outcome of an abandoned check so asyncio does not log it.
    if not task.cancelled():
        task.exception()


async def timed_probe(check: HealthCheck, timeout: float) -> HealthProbeResult:
    """Run *check* with a hard timeout and time it.

    On timeout the check is cancelled without waiting for it to unwind, so a
    stuck connection never delays the caller.
    """
    started = time.perf_counter()
    task = asyncio.ensure_future(check())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_discard)
        raise
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    if not done:
        task.cancel()
        task.add_done_callback(_discard)
        return HealthProbeResult(healthy=False, response_time_ms=elapsed_ms, error=TIMEOUT_ERROR)

    if task.cancelled():
        return HealthProbeResult(healthy=False, response_time_ms=elapsed_ms, error="cancelled")

    exc = task.exception()
    if exc is not None:
        return HealthProbeResult(
            healthy=False,
            response_time_ms=elapsed_ms,
            error=str(exc) or type(exc).__name__,
        )

    return HealthProbeResult(healthy=True, response_time_ms=elapsed_ms, warning=task.result())


def _reports_degraded(response: httpx.Response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("status") == "degraded"


def http_check(client: httpx.AsyncClient, url: str) -> HealthCheck:
    """GET *url*; non-2xx answers and ``{"status": "degraded"}`` are warnings."""

    async def check() -> str | None:
        response = await client.get(url, headers={"Accept": "application/json"})
        if _reports_degraded(response):
            return "service reports degraded"
        if response.is_error:
            return f"HTTP {response.status_code}: {response.reason_phrase}"
        return None

    return check


def postgres_check(engine: AsyncEngine) -> HealthCheck:
    async def check() -> str | None:
        async with engine.connect() as conn:
            value = await conn.scalar(text("SELECT 1"))
        if value != 1:
            raise RuntimeError("Unexpected response from database")
        return None

    return check


def redis_check(client: redis.Redis) -> HealthCheck:
    async def check() -> str | None:
        if not await client.ping():
            raise RuntimeError("Unexpected response from Redis")
        return None

    return check


def self_check() -> HealthCheck:
    """The API server is reachable by definition while it serves the request."""

    async def check() -> str | None:
        return None

    return check
