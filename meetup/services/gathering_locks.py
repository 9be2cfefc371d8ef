"""Gathering Locks — per-gathering mutual exclusion for join/leave workflows.

Invariants:
    - At most one holder per gathering id at any time
    - Different gathering ids never block each other
    - Waiting is bounded: hold() raises ContentionError after timeout_seconds
    - A lock is dropped from the registry once no holder or waiter remains
    - Every writer of gathering.members / gathering.groups goes through run()

Design Decisions:
    - asyncio.Lock per id over a global lock: operations on different gatherings
      proceed fully in parallel
    - Process-local: the API runs as a single uvicorn worker; a multi-worker
      deployment would need a shared lock (e.g. PostgreSQL advisory locks)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import AsyncGenerator, TypeVar

from meetup.core.domain_types import GatheringId
from meetup.core.errors import ContentionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GatheringLockRegistry:
    """Hands out one asyncio.Lock per gathering id."""

    def __init__(self) -> None:
        self._locks: dict[GatheringId, asyncio.Lock] = {}
        self._users: dict[GatheringId, int] = {}

    @property
    def tracked(self) -> int:
        """Number of gathering ids currently held or waited on."""
        return len(self._locks)

    def is_locked(self, gathering_id: GatheringId) -> bool:
        lock = self._locks.get(gathering_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(
        self, gathering_id: GatheringId, timeout_seconds: float,
    ) -> AsyncGenerator[None, None]:
        """Hold the gathering's lock for the duration of the block."""
        lock = self._locks.setdefault(gathering_id, asyncio.Lock())
        self._users[gathering_id] = self._users.get(gathering_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Lock wait timed out after {timeout_seconds}s",
                    extra={"gathering_id": gathering_id},
                )
                raise ContentionError(gathering_id, timeout_seconds)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_slot(gathering_id)

    async def run(
        self,
        gathering_id: GatheringId,
        workflow: Callable[[], Awaitable[T]],
        timeout_seconds: float,
        max_attempts: int,
    ) -> T:
        """Run workflow under the gathering lock, retrying on ContentionError.

        Covers both lock timeouts and group contention raised by the workflow;
        the workflow must be safe to re-run from scratch.
        """
        for attempt in range(1, max_attempts + 1):
            try:
                async with self.hold(gathering_id, timeout_seconds):
                    return await workflow()
            except ContentionError as e:
                if attempt >= max_attempts:
                    e.context.attempt = attempt
                    raise
                logger.warning(
                    f"{e.context.resource_type.value} busy, retrying",
                    extra={"gathering_id": gathering_id, "attempt": attempt},
                )
        raise ContentionError(gathering_id, timeout_seconds, max_attempts)

    def _release_slot(self, gathering_id: GatheringId) -> None:
        remaining = self._users[gathering_id] - 1
        if remaining:
            self._users[gathering_id] = remaining
        else:
            del self._users[gathering_id]
            del self._locks[gathering_id]
