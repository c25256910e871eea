"""
Authoritative in-memory membership state.

The registry maps peer keys to TrackedPeer state and owns every mutation of
it. Mutations happen inside ``locked(key)``, which serializes the periodic
reconciliation cycle and backoff tasks touching the same key while leaving
unrelated keys free. ``snapshot()`` copies state and never waits on a lock,
so a slow transport holding one key's lock cannot stall registry-wide reads.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from hyperping.discovery.models.peer_record import PeerRecord
from hyperping.discovery.models.tracked_peer import TrackedPeer


class PeerRegistry:
    """
    Per-key synchronized store of tracked peers.

    Also remembers permanently excluded keys: peers that exhausted their
    reconnect attempts are evicted and not re-admitted until
    ``reset_exclusions`` is called or the process restarts.

    Usage:
        registry = PeerRegistry(initial_reconnect_delay=1.0)

        registry.upsert(record.key, record)

        async with registry.locked(record.key) as peer:
            if peer is not None:
                peer.failed = True
    """

    def __init__(
        self,
        initial_reconnect_delay: float = 1.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._initial_reconnect_delay = initial_reconnect_delay
        self._clock = clock or time.monotonic
        self._peers: dict[str, TrackedPeer] = {}
        self._excluded: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._lock_owners: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._peers)

    def __contains__(self, key: str) -> bool:
        return key in self._peers

    def keys(self) -> set[str]:
        return set(self._peers)

    def upsert(self, key: str, record: PeerRecord) -> TrackedPeer:
        """
        Track a peer, or refresh the record of an already tracked one.

        New peers start healthy with the initial reconnect delay and a
        connect time of now. Existing state is kept; only the record is
        replaced.
        """
        peer = self._peers.get(key)
        if peer is not None:
            peer.record = record
            return peer

        peer = TrackedPeer(
            key=key,
            record=record,
            connect_time=self._clock(),
            reconnect_delay=self._initial_reconnect_delay,
        )
        self._peers[key] = peer
        return peer

    def get(self, key: str) -> TrackedPeer | None:
        """Detached copy of a tracked peer, or None if not tracked."""
        peer = self._peers.get(key)
        if peer is None:
            return None

        return peer.detach()

    def remove(self, key: str) -> TrackedPeer | None:
        """
        Evict a peer, cancelling any pending reconnect.

        Returns the evicted state, or None when the key was not tracked.
        """
        peer = self._peers.pop(key, None)
        if peer is None:
            return None

        peer.cancel_backoff()
        return peer

    def snapshot(self) -> list[TrackedPeer]:
        """Consistent point-in-time copies of every tracked peer."""
        return [peer.detach() for peer in list(self._peers.values())]

    @asynccontextmanager
    async def locked(
        self,
        key: str,
        create: bool = False,
    ) -> AsyncIterator[TrackedPeer | None]:
        """
        Hold the lock for ``key`` and yield its live state.

        Yields None when the key is not tracked (or was evicted while
        waiting for the lock), so callers treat concurrent eviction as a
        no-op. Untracked keys are not locked unless ``create`` is set,
        which callers about to ``upsert`` the key must pass.

        Lock entries are reference counted and dropped once no task holds
        or waits on them, so the lock map only covers keys in use.
        """
        if not create and key not in self._peers and key not in self._locks:
            yield None
            return

        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock

        self._lock_users[key] = self._lock_users.get(key, 0) + 1

        try:
            async with lock:
                self._lock_owners[key] = asyncio.current_task()
                try:
                    yield self._peers.get(key)

                finally:
                    self._lock_owners.pop(key, None)

        finally:
            users = self._lock_users[key] - 1
            if users > 0:
                self._lock_users[key] = users

            else:
                del self._lock_users[key]
                del self._locks[key]

    def holds_lock(self) -> bool:
        """True when the current task holds the lock of any key."""
        current = asyncio.current_task()
        return current is not None and any(
            owner is current for owner in self._lock_owners.values()
        )

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def exclude(self, key: str) -> TrackedPeer | None:
        """Evict a peer and bar it from re-admission."""
        self._excluded.add(key)
        return self.remove(key)

    def is_excluded(self, key: str) -> bool:
        return key in self._excluded

    @property
    def excluded(self) -> set[str]:
        return set(self._excluded)

    def reset_exclusions(self, key: str | None = None) -> int:
        """
        Re-allow excluded peers to be admitted by later observations.

        Returns the number of exclusions cleared.
        """
        if key is None:
            cleared = len(self._excluded)
            self._excluded.clear()
            return cleared

        if key in self._excluded:
            self._excluded.discard(key)
            return 1

        return 0

    def clear(self) -> int:
        """Evict every peer and cancel every pending reconnect."""
        count = 0
        for key in list(self._peers):
            if self.remove(key) is not None:
                count += 1

        return count

    def pending_backoffs(self) -> list[asyncio.Task]:
        return [
            peer.backoff_handle
            for peer in self._peers.values()
            if peer.backoff_handle is not None and not peer.backoff_handle.done()
        ]
