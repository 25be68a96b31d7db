"""Dashboard polling client.

Polls the readiness API on a fixed interval per view. A new poll is never
issued while the previous one for the same view is still outstanding, and a
failed poll keeps the last good data, flagging the view as stale instead of
blanking it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Generic, TypeVar

import httpx
from pydantic import TypeAdapter

from app.config import settings
from app.models.setup import ServiceStatus, SetupReadiness

logger = logging.getLogger(__name__)

T = TypeVar("T")

_service_list = TypeAdapter(list[ServiceStatus])


class DashboardApiClient:
    """Thin async client for the readiness endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def get_setup_status(self) -> SetupReadiness:
        response = await self._client.get("/api/setup/status")
        response.raise_for_status()
        return SetupReadiness.model_validate(response.json())

    async def get_services(self) -> list[ServiceStatus]:
        response = await self._client.get("/api/services")
        response.raise_for_status()
        return _service_list.validate_python(response.json())

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DashboardApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


@dataclass
class PollState(Generic[T]):
    """What a view currently shows."""

    data: T | None = None
    error: str | None = None
    last_success: datetime | None = None
    last_attempt: datetime | None = None

    @property
    def checking(self) -> bool:
        """No poll has completed yet."""
        return self.data is None and self.error is None

    @property
    def stale(self) -> bool:
        """Showing data older than the most recent (failed) poll."""
        return self.error is not None and self.data is not None


class ViewPoller(Generic[T]):
    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        interval: float,
        on_update: Callable[[PollState[T]], None] | None = None,
    ) -> None:
        self.name = name
        self.interval = interval
        self._fetch = fetch
        self._on_update = on_update
        self._state: PollState[T] = PollState()
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> PollState[T]:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _poll(self) -> None:
        attempted_at = datetime.now(UTC)
        try:
            data = await self._fetch()
        except Exception as exc:
            logger.warning("Poll of %s failed: %s", self.name, exc)
            self._state = PollState(
                data=self._state.data,
                error=str(exc) or type(exc).__name__,
                last_success=self._state.last_success,
                last_attempt=attempted_at,
            )
        else:
            self._state = PollState(
                data=data,
                last_success=attempted_at,
                last_attempt=attempted_at,
            )

        if self._on_update is not None:
            try:
                self._on_update(self._state)
            except Exception:
                logger.exception("Update callback for %s failed", self.name)

    def tick(self) -> bool:
        """Start a poll unless one is outstanding. Returns whether it started."""
        if self.in_flight:
            logger.debug("Skipping %s poll: previous request still outstanding", self.name)
            return False
        self._task = asyncio.create_task(self._poll())
        return True

    async def poll_once(self) -> bool:
        if not self.tick():
            return False
        assert self._task is not None
        await self._task
        return True

    async def run(self, stop: asyncio.Event) -> None:
        """Poll every ``interval`` seconds until *stop* is set."""
        try:
            while not stop.is_set():
                self.tick()
                try:
                    await asyncio.wait_for(stop.wait(), timeout=self.interval)
                except TimeoutError:
                    pass
        finally:
            await self.cancel()

    async def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None


def setup_status_poller(
    client: DashboardApiClient,
    interval: float | None = None,
    on_update: Callable[[PollState[SetupReadiness]], None] | None = None,
) -> ViewPoller[SetupReadiness]:
    if interval is None:
        interval = settings.setup_status_poll_interval
    return ViewPoller("setup-status", client.get_setup_status, interval, on_update)


def services_poller(
    client: DashboardApiClient,
    interval: float | None = None,
    on_update: Callable[[PollState[list[ServiceStatus]]], None] | None = None,
) -> ViewPoller[list[ServiceStatus]]:
    if interval is None:
        interval = settings.services_poll_interval
    return ViewPoller("services", client.get_services, interval, on_update)
