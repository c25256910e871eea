"""Models for the discovery system."""

from hyperping.discovery.models.peer_record import (
    PeerRecord as PeerRecord,
    make_peer_key as make_peer_key,
)
from hyperping.discovery.models.tracked_peer import (
    TrackedPeer as TrackedPeer,
)
from hyperping.discovery.models.directory_selector import (
    DirectorySelector as DirectorySelector,
)
from hyperping.discovery.models.discovery_config import (
    DiscoveryConfig as DiscoveryConfig,
    create_discovery_config_from_env as create_discovery_config_from_env,
)
