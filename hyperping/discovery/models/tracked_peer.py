"""
Engine-owned membership state for a single peer.
"""

import asyncio
from dataclasses import dataclass, field

from hyperping.discovery.models.peer_record import PeerRecord


@dataclass(slots=True)
class TrackedPeer:
    """
    Mutable state of a peer tracked by the registry.

    Only mutated while holding the registry lock for ``key``.
    """

    key: str
    """Stable peer identity (``ip[:port]``)."""

    record: PeerRecord
    """Most recent directory record for this peer."""

    connect_time: float
    """Monotonic timestamp of the last (re)admission."""

    reconnect_delay: float
    """Delay used for the next retry after a sustained connection is lost."""

    failed: bool = False
    """True once a removal notification was emitted for a failure."""

    connect_failures: int = 0
    """Consecutive failures after sustained connections."""

    failed_at: float | None = None
    """Monotonic timestamp of the most recent failure."""

    backoff_handle: asyncio.Task | None = field(default=None, repr=False, compare=False)
    """Pending reconnect task, if one is scheduled."""

    def cancel_backoff(self) -> bool:
        handle = self.backoff_handle
        self.backoff_handle = None

        if handle is None or handle.done():
            return False

        # A reconnect must never cancel itself mid-transition.
        if handle is asyncio.current_task():
            return False

        handle.cancel()
        return True

    def connected_for(self, now: float) -> float:
        """Seconds since admission, measured up to the last failure when failed."""
        until = self.failed_at if self.failed and self.failed_at is not None else now
        return max(0.0, until - self.connect_time)

    def detach(self) -> "TrackedPeer":
        """Point-in-time copy safe to hand outside the registry lock."""
        return TrackedPeer(
            key=self.key,
            record=self.record,
            connect_time=self.connect_time,
            reconnect_delay=self.reconnect_delay,
            failed=self.failed,
            connect_failures=self.connect_failures,
            failed_at=self.failed_at,
            backoff_handle=self.backoff_handle,
        )
