from .peer_registry import PeerRegistry as PeerRegistry
