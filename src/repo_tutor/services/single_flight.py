"""Single-flight keyed cache.

Concurrent requests for the same key collapse into one underlying
computation.  The check-and-mark-pending step happens synchronously inside
:meth:`SingleFlightCache.get_or_compute`, so no lock is needed on a single
event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from enum import Enum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class EntryState(str, Enum):
    ABSENT = "absent"
    PENDING = "pending"
    READY = "ready"


class SingleFlightCache(Generic[K, V]):
    """Mapping of key → {absent | pending | ready(value)}.

    The computation runs in its own task: a caller that is cancelled while
    waiting does not cancel the work, and the value still lands under its
    own key.  Failed computations are evicted so the key can be retried.

    With ``retain=False`` an entry is also dropped as soon as its
    computation succeeds, so the cache only deduplicates in-flight work.
    """

    def __init__(self, retain: bool = True) -> None:
        self._retain = retain
        self._entries: dict[K, asyncio.Future[V]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def status(self, key: K) -> EntryState:
        future = self._entries.get(key)
        if future is None:
            return EntryState.ABSENT
        return EntryState.READY if future.done() else EntryState.PENDING

    def peek(self, key: K) -> V | None:
        """Return the ready value for *key*, or ``None``."""
        future = self._entries.get(key)
        if future is None or not future.done():
            return None
        return future.result()

    async def get_or_compute(self, key: K, compute: Callable[[], Awaitable[V]]) -> V:
        """Return the cached value, join the pending computation, or start one."""
        future = self._entries.get(key)
        if future is not None and future.done():
            return future.result()

        if future is None:
            future = asyncio.get_running_loop().create_future()
            self._entries[key] = future
            task = asyncio.create_task(self._run(key, future, compute))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            logger.debug("Joining in-flight computation for %r", key)

        return await asyncio.shield(future)

    async def _run(
        self,
        key: K,
        future: asyncio.Future[V],
        compute: Callable[[], Awaitable[V]],
    ) -> None:
        try:
            value = await compute()
        except asyncio.CancelledError:
            self._evict(key, future)
            future.cancel()
            raise
        except Exception as exc:
            self._evict(key, future)
            future.set_exception(exc)
            future.exception()  # mark retrieved
        else:
            if not self._retain:
                self._evict(key, future)
            future.set_result(value)

    def _evict(self, key: K, future: asyncio.Future[V]) -> None:
        if self._entries.get(key) is future:
            del self._entries[key]
