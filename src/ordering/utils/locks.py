"""Keyed critical sections for stock entries and orders.

A ``KeyedLock`` hands out one reentrant lock per key, so mutations of the same
stock entry (or transitions of the same order) serialize while unrelated keys
proceed in parallel. Locks are created on first use and dropped once no thread
holds or waits on them.

Acquisition order across registries is always orders first, then stock, and
within one registry keys are taken in sorted order.
"""

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class KeyedLock:
    def __init__(self, name: str) -> None:
        self.name = name
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: Hashable, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """Hold the locks for every key until the block exits."""
        held: list[tuple[Hashable, _Entry]] = []
        try:
            for key in sorted(set(keys), key=str):
                entry = self._checkout(key)
                try:
                    entry.lock.acquire()
                except BaseException:
                    self._checkin(key, entry)
                    raise
                held.append((key, entry))
            yield
        finally:
            for key, entry in reversed(held):
                entry.lock.release()
                self._checkin(key, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


stock_locks = KeyedLock("stock")
order_locks = KeyedLock("order")
