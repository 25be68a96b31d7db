"""Settle-all fan-out/join for independent probe coroutines.

Every input produces exactly one :class:`Outcome`, success or failure, in the
order the inputs were given. A failing task never aborts its siblings and no
aggregate exception is raised.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K")
T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[K, T]):
    """Result of one settled task, keyed by its origin."""

    key: K
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(tasks: Iterable[tuple[K, Awaitable[T]]]) -> list[Outcome[K, T]]:
    """Run all awaitables concurrently and wait for every one to settle.

    Results are buffered by origin key and returned in input order,
    regardless of completion order.
    """
    keyed = list(tasks)
    if not keyed:
        return []

    results = await asyncio.gather(*(aw for _, aw in keyed), return_exceptions=True)

    outcomes: list[Outcome[K, T]] = []
    for (key, _), result in zip(keyed, results):
        if isinstance(result, BaseException):
            outcomes.append(Outcome(key=key, error=result))
        else:
            outcomes.append(Outcome(key=key, value=result))
    return outcomes
