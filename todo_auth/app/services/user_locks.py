import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from uuid import UUID


class UserLockRegistry:
    """
    One asyncio.Lock per user, created on demand and dropped when idle.

    Held from refresh token revocation until commit so that two requests of
    the same user in this process never rotate concurrently.
    """

    def __init__(self):
        self._locks: Dict[UUID, asyncio.Lock] = {}
        self._waiters: Dict[UUID, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._waiters[user_id] = self._waiters.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[user_id] -= 1
            if self._waiters[user_id] == 0:
                del self._waiters[user_id]
                del self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)
