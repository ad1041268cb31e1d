"""
Per-warehouse mutual exclusion.

Every stock operation holds the locks of the warehouses it touches for its
whole read-check-write sequence. Locks are taken in sorted id order so two
transfers running in opposite directions cannot deadlock.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class WarehouseLocks:
    """Registry of one ``threading.Lock`` per warehouse id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, warehouse_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(warehouse_id)
            if lock is None:
                lock = self._locks[warehouse_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *warehouse_ids: str) -> Iterator[None]:
        """Hold the locks of all given warehouses; duplicates are collapsed."""
        locks = [self.lock_for(wid) for wid in sorted(set(warehouse_ids))]
        acquired: list[threading.Lock] = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Process-wide registry shared by every request's service instance
warehouse_locks = WarehouseLocks()
