"""
In-process locks that serialize mutations of one aggregate.
A portfolio and everything it owns share the portfolio's lock.

Registry entries are counted per holder or waiter and dropped when the last
one leaves, so ids of deleted aggregates do not accumulate.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, Tuple

_registry_lock = threading.Lock()
_locks: Dict[Tuple[str, Hashable], "_Entry"] = {}


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


def _checkout(key: Tuple[str, Hashable]) -> threading.RLock:
    with _registry_lock:
        entry = _locks.get(key)
        if entry is None:
            entry = _locks[key] = _Entry()
        entry.users += 1
        return entry.lock


def _checkin(key: Tuple[str, Hashable]) -> None:
    with _registry_lock:
        entry = _locks[key]
        entry.users -= 1
        if entry.users == 0:
            del _locks[key]


def registered_lock_count() -> int:
    """Number of aggregates currently locked or waited on."""
    with _registry_lock:
        return len(_locks)


@contextmanager
def aggregate_lock(kind: str, *aggregate_ids: Hashable) -> Iterator[None]:
    """
    Hold the locks of one or more aggregates of the same kind.
    Ids are locked in sorted order so two movers cannot deadlock; None ids are skipped.
    """
    keys = [(kind, i) for i in sorted({i for i in aggregate_ids if i is not None}, key=repr)]
    acquired = []
    try:
        for key in keys:
            lock = _checkout(key)
            lock.acquire()
            acquired.append(lock)
        yield
    finally:
        for key, lock in reversed(list(zip(keys, acquired))):
            lock.release()
            _checkin(key)
