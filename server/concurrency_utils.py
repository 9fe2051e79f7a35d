"""
Small concurrency helpers for the threaded Socket.IO host.

The server runs Flask-SocketIO with async_mode='threading', so two clients can
run /cleaningitem handlers at the same time. Shared state (the persisted
cleaning item configuration) is mutated only inside a named lock.

Usage:
    from concurrency_utils import atomic

    with atomic('config_store'):
        item = store.config.item
        item.lore = [...]
        store.save()

Locks are re-entrant, so a locked section may call helpers that take the same
lock again.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import RLock
from typing import Dict, Iterator

_LOCKS: Dict[str, RLock] = {}
_LOCKS_GUARD = RLock()


def get_lock(name: str) -> RLock:
    """Return a process-wide lock for the given name, creating it if needed."""
    lk = _LOCKS.get(name)
    if lk is not None:
        return lk
    with _LOCKS_GUARD:
        lk = _LOCKS.get(name)
        if lk is None:
            lk = RLock()
            _LOCKS[name] = lk
        return lk


@contextmanager
def atomic(name: str) -> Iterator[None]:
    """Context manager that holds the named lock for the duration."""
    lk = get_lock(name)
    with lk:
        yield
