from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Hashable


class BookingLocks:
    """
    In-process mutual exclusion for bookings.

    A booking holds the lock of its (client, date) pair and then the lock of its
    (date, slot) pair for the whole check-and-save sequence. Client locks are always
    taken before slot locks and a request holds at most one of each, so two
    requests can never wait on each other in a cycle.

    A key's lock lives only while some request holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def _held(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold(self, client_id: int, timestamp: datetime) -> AsyncIterator[None]:
        day: date = timestamp.date()
        async with self._held(("client", client_id, day)):
            async with self._held(("slot", day, timestamp.time())):
                yield

    def __len__(self) -> int:
        return len(self._locks)
