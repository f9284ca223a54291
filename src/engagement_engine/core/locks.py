"""Per-key serialization primitives."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _Slot:
    lock: Lock = field(default_factory=Lock)
    users: int = 0


class KeyedLocks:
    """Registry of one lock per key.

    Mutations on the same key are serialized while different keys proceed in
    parallel; there is no global lock held across operations. A key's lock
    is dropped once no thread holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Hashable, _Slot] = {}

    def _checkout(self, key: Hashable) -> Lock:
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = _Slot()
                self._locks[key] = slot
            slot.users += 1
            return slot.lock

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            slot = self._locks[key]
            slot.users -= 1
            if slot.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._checkin(key)

    @contextmanager
    def hold_many(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """Hold the locks for every key, acquired in sorted order."""
        with ExitStack() as stack:
            for key in sorted(set(keys), key=str):
                stack.enter_context(self.hold(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


content_locks = KeyedLocks()
user_locks = KeyedLocks()
period_locks = KeyedLocks()
