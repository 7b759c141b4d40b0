import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple
from uuid import UUID


class FamilyLockRegistry:
    """
    In-process mutual exclusion per rotation family.

    Serializes concurrent presentations of tokens from the same family
    inside one worker. Across workers the conditional update in
    mark_used() is what decides the winner; this lock only keeps the
    losers of one process from racing each other into the database.

    Locks are held weakly: once no coroutine waits on a family its lock is
    dropped.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[Tuple[UUID, UUID], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @asynccontextmanager
    async def hold(self, tenant_id: UUID, family_id: UUID) -> AsyncIterator[None]:
        key = (tenant_id, family_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


family_locks = FamilyLockRegistry()
