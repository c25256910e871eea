"""
Discovery and membership reconciliation.

Periodically queries a directory (DNS, or any injected DirectoryClient) for
the peers of a service, diffs the answer against the tracked membership and
reports the difference to a MembershipTransport.

Features:
- Bounded fixed-delay retry of directory lookups
- Outage tolerance (a failed lookup never evicts peers)
- Exponential reconnect backoff with flap detection
- Permanent exclusion after repeated sustained failures
- Rolling update partitioning by group key

Usage:
    from hyperping.discovery import (
        CallbackMembershipTransport,
        DiscoveryConfig,
        StaticDirectoryClient,
        start_discovery,
    )

    config = DiscoveryConfig(service_name="brokers.local", query_interval=10.0)
    directory = StaticDirectoryClient.from_seeds(["10.0.0.5:61616"])

    handle = await start_discovery(
        config,
        directory,
        CallbackMembershipTransport(on_peer_added=print, on_peer_removed=print),
    )
"""

# Models
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

# DNS
from hyperping.discovery.dns.resolver import (
    AsyncDNSResolver as AsyncDNSResolver,
    DNSError as DNSError,
    DNSResult as DNSResult,
    SRVRecord as SRVRecord,
)

# Directory clients
from hyperping.discovery.directory.directory_client import (
    DirectoryClient as DirectoryClient,
)
from hyperping.discovery.directory.dns_directory_client import (
    DNSDirectoryClient as DNSDirectoryClient,
)
from hyperping.discovery.directory.static_directory_client import (
    StaticDirectoryClient as StaticDirectoryClient,
)

# Transport
from hyperping.discovery.transport.membership_transport import (
    CallbackMembershipTransport as CallbackMembershipTransport,
    MembershipTransport as MembershipTransport,
)
from hyperping.discovery.transport.membership_notifier import (
    MembershipNotifier as MembershipNotifier,
)

# Engine
from hyperping.discovery.registry.peer_registry import (
    PeerRegistry as PeerRegistry,
)
from hyperping.discovery.partition.rolling_update_partitioner import (
    PartitionResult as PartitionResult,
    RollingUpdatePartitioner as RollingUpdatePartitioner,
)
from hyperping.discovery.backoff.backoff_scheduler import (
    BackoffPolicy as BackoffPolicy,
    BackoffScheduler as BackoffScheduler,
    FailureOutcome as FailureOutcome,
)
from hyperping.discovery.reconcile.reconciliation_cycle import (
    CycleResult as CycleResult,
    ReconciliationCycle as ReconciliationCycle,
)

# Lifecycle
from hyperping.discovery.discovery_agent import (
    DiscoveryAgent as DiscoveryAgent,
    DiscoveryHandle as DiscoveryHandle,
    start_discovery as start_discovery,
    stop_discovery as stop_discovery,
)
