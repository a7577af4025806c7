"""Per-election in-process locks.

Serializes the vote submission critical section and lifecycle transitions of
a single election within one worker process.  Elections never share a lock.
Cross-process serialization is the job of the ``SELECT ... FOR UPDATE`` row
lock taken inside the same section, and the votes unique constraint remains
authoritative beneath both.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ElectionLockRegistry:
    """Lazily created ``asyncio.Lock`` per election id.

    A lock is dropped once its last holder or waiter leaves ``hold``.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, election_id: int) -> asyncio.Lock:
        lock = self._locks.get(election_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[election_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, election_id: int) -> AsyncIterator[None]:
        """Hold the lock for ``election_id`` for the duration of the block."""
        lock = self.lock_for(election_id)
        self._users[election_id] = self._users.get(election_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[election_id] - 1
            if remaining:
                self._users[election_id] = remaining
            else:
                del self._users[election_id]
                if self._locks.get(election_id) is lock:
                    del self._locks[election_id]

    def discard(self, election_id: int) -> None:
        """Forget the lock of a deleted election if nobody is using it."""
        lock = self._locks.get(election_id)
        if lock is not None and election_id not in self._users and not lock.locked():
            del self._locks[election_id]


election_locks = ElectionLockRegistry()
