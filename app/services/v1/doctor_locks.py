# app/services/v1/doctor_locks.py
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class DoctorLockRegistry:
    """
    One asyncio.Lock per doctor id, so commits for the same doctor run one
    at a time within a process. Locks are dropped once nobody holds or
    waits for them.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, doctor_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(doctor_id, asyncio.Lock())
        self._users[doctor_id] = self._users.get(doctor_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[doctor_id] -= 1
            if self._users[doctor_id] == 0:
                del self._users[doctor_id]
                del self._locks[doctor_id]

    def is_locked(self, doctor_id: str) -> bool:
        lock = self._locks.get(doctor_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


doctor_locks = DoctorLockRegistry()

__all__ = ["DoctorLockRegistry", "doctor_locks"]
