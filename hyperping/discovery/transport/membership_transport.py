"""
Membership transport boundary.

The engine reports membership changes to the cluster messaging stack
through this capability. Calls are awaited inline from the engine's own
tasks; nothing is buffered, so a slow transport slows only the task that
reported the change.
"""

import inspect
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from hyperping.discovery.models.peer_record import PeerRecord


@runtime_checkable
class MembershipTransport(Protocol):
    async def on_peer_added(self, record: PeerRecord) -> None: ...

    async def on_peer_removed(self, key: str) -> None: ...


class CallbackMembershipTransport:
    """
    Adapts plain or coroutine callables to a MembershipTransport.

    Usage:
        transport = CallbackMembershipTransport(
            on_peer_added=lambda record: bridge.connect(record.uri()),
            on_peer_removed=bridge.disconnect,
        )
    """

    def __init__(
        self,
        on_peer_added: Callable[[PeerRecord], Any | Awaitable[Any]] | None = None,
        on_peer_removed: Callable[[str], Any | Awaitable[Any]] | None = None,
    ) -> None:
        self._on_peer_added = on_peer_added
        self._on_peer_removed = on_peer_removed

    async def on_peer_added(self, record: PeerRecord) -> None:
        if self._on_peer_added is None:
            return

        result = self._on_peer_added(record)
        if inspect.isawaitable(result):
            await result

    async def on_peer_removed(self, key: str) -> None:
        if self._on_peer_removed is None:
            return

        result = self._on_peer_removed(key)
        if inspect.isawaitable(result):
            await result
