"""
Per-user serialization of balance mutations.

All paths that touch ``users.balance`` hold the same per-user lock for the
whole database transaction, so mutations of one user are linearized while
different users proceed in parallel. On PostgreSQL the service also takes a
row lock (``SELECT ... FOR UPDATE``), which covers several worker processes.
"""

import threading
import time
import weakref
from contextlib import contextmanager
from uuid import UUID

from scorekings.core.errors import Timeout


class Deadline:
    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(self.expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self) -> None:
        if self.expired():
            raise Timeout(f"Request exceeded {self.seconds:g}s")


class UserLocks:
    def __init__(self):
        self._guard = threading.Lock()
        # entries vanish once no request holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[UUID, threading.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: UUID, timeout: float):
        lock = self._lock_for(user_id)
        if not lock.acquire(timeout=timeout):
            raise Timeout(f"Timed out waiting for account {user_id}")
        try:
            yield
        finally:
            lock.release()


# process-wide registry shared by every LedgerService
user_locks = UserLocks()
