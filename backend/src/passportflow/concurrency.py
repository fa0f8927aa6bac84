"""Per-aggregate serialisation for read-modify-write operations.

Status changes, verification and attachment association all load an
aggregate, mutate it and save it. Within one process these are serialised per
aggregate id; across processes the version check in the repositories turns a
lost update into ``ConcurrencyConflictError``.

Appointment bookings are additionally serialised per ``TimeSlot`` so the
availability check and the insert happen as one step.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


class AggregateLockRegistry:
    """Hands out one ``asyncio.Lock`` per key while it is in use."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


application_locks = AggregateLockRegistry()
renewal_locks = AggregateLockRegistry()
appointment_locks = AggregateLockRegistry()
