"""
Keyed in-process locks

Serializes check-then-act sequences on one room or one booking. Keys are
always acquired in sorted order, and booking locks are taken before room
locks, so no two critical sections can wait on each other. The database
row locks taken inside the critical sections cover deployments with
several processes.
"""
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List, Optional
import logging
import threading

from hotelos.config import settings
from hotelos.errors import ConflictError

logger = logging.getLogger(__name__)


class KeyedLock:
    """A family of named mutexes, created on first use"""

    def __init__(self, name: str, timeout: Optional[float] = None):
        self.name = name
        self._timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else settings.LOCK_TIMEOUT_SECONDS

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """
        Hold the locks for every key until the block exits.

        Raises:
            ConflictError: a lock could not be acquired within the timeout
        """
        acquired: List[threading.Lock] = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                if not lock.acquire(timeout=self.timeout):
                    logger.warning(f"Timed out waiting for {self.name} lock {key}")
                    raise ConflictError(
                        f"{self.name.capitalize()} {key} is busy, retry the request",
                        context={f"{self.name}_id": key},
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


room_locks = KeyedLock("room")
booking_locks = KeyedLock("booking")
