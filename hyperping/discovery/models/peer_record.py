"""
Peer records as reported by a directory.
"""

from dataclasses import dataclass


def make_peer_key(address: str, port: int | None = None) -> str:
    """
    Build the stable identity of a peer: ``ip[:port]``.

    IPv6 literals are bracketed when a port is attached so the key stays
    unambiguous.
    """
    if not port or port < 1:
        return address

    if ":" in address and not address.startswith("["):
        return f"[{address}]:{port}"

    return f"{address}:{port}"


@dataclass(slots=True, frozen=True)
class PeerRecord:
    """
    A single peer endpoint returned by a directory lookup.

    Immutable value; two records with the same key describe the same peer
    even if their other fields differ.
    """

    address: str
    """IP address (or hostname) of the peer."""

    port: int = 0
    """Service port. Zero when the directory did not supply one."""

    group_key: str | None = None
    """Deployment generation the peer belongs to (rolling updates)."""

    ready: bool = True
    """Directory-reported readiness. Directories without the notion report ready."""

    name: str | None = None
    """Optional informational name (pod name, SRV target)."""

    @property
    def key(self) -> str:
        return make_peer_key(self.address, self.port)

    def uri(self, transport_type: str = "tcp") -> str:
        host = self.address
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"

        return f"{transport_type}://{host}:{self.port}"
