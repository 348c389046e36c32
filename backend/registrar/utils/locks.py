"""In-process keyed locks used to serialize enrollment writes."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator, List


class KeyedLocks:
    """One lock per key, created on first use and dropped when unused.

    `hold` acquires several keys in sorted order so two callers asking for
    overlapping keys can never deadlock each other. Each entry counts the
    callers holding or waiting on it; the entry is removed once that count
    drops to zero, so the table only holds keys currently in use.
    """

    def __init__(self):
        self._locks: dict[Hashable, List] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        ordered = sorted(set(keys))
        locks = [self._checkout(k) for k in ordered]
        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
