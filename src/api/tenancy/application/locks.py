"""Per-key asyncio locks.

Serializes work on one tenant key (or one store) without serializing
unrelated tenants. Locks are held weakly, so a key's lock disappears once
no coroutine holds or waits on it.
"""

from __future__ import annotations

import asyncio
import weakref


class KeyedLocks:
    """Lazily created asyncio.Lock per string key."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, key: str) -> asyncio.Lock:
        """Return the lock for a key, creating it if needed.

        The caller must keep a reference for as long as it uses the lock,
        which ``async with locks.lock_for(key):`` does.
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
