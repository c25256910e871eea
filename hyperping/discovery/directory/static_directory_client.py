from typing import Iterable, Sequence

from hyperping.discovery.models.directory_selector import DirectorySelector
from hyperping.discovery.models.peer_record import PeerRecord
from hyperping.errors import DirectoryError


class StaticDirectoryClient:
    """
    In-memory directory answering every selector with the same peers.

    Serves static seed lists and test doubles. Outages can be injected
    with ``fail_next``.
    """

    def __init__(self, peers: Iterable[PeerRecord] | None = None) -> None:
        self._peers: list[PeerRecord] = list(peers or [])
        self._failures_remaining = 0
        self._failure: Exception | None = None
        self.calls = 0

    @classmethod
    def from_seeds(cls, seeds: Iterable[str], default_port: int = 0) -> "StaticDirectoryClient":
        """Build from ``host`` or ``host:port`` strings."""
        records: list[PeerRecord] = []
        for seed in seeds:
            if seed.count(":") == 1:
                host, port_str = seed.rsplit(":", 1)
                port = int(port_str)
            else:
                host = seed
                port = default_port

            records.append(PeerRecord(address=host, port=port))

        return cls(records)

    def set_peers(self, peers: Iterable[PeerRecord]) -> None:
        self._peers = list(peers)

    def fail_next(self, count: int, error: Exception | None = None) -> None:
        self._failures_remaining = count
        self._failure = error

    async def list_peers(self, selector: DirectorySelector) -> Sequence[PeerRecord]:
        self.calls += 1

        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            raise self._failure or DirectoryError(
                selector.describe(),
                "directory unavailable",
            )

        return list(self._peers)
