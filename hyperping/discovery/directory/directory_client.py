"""
Directory client boundary.

A directory enumerates the peers currently registered for a selector.
Implementations must be side-effect free so the engine can retry them,
and raise (rather than return an empty list) when the directory itself
cannot be reached, so an outage is never mistaken for "no peers".
"""

from typing import Protocol, Sequence, runtime_checkable

from hyperping.discovery.models.directory_selector import DirectorySelector
from hyperping.discovery.models.peer_record import PeerRecord


@runtime_checkable
class DirectoryClient(Protocol):
    async def list_peers(
        self,
        selector: DirectorySelector,
    ) -> Sequence[PeerRecord]: ...
