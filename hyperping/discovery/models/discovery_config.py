"""
Configuration for membership discovery.
"""

from dataclasses import dataclass

from hyperping.discovery.models.directory_selector import DirectorySelector
from hyperping.env import Env, TimeParser
from hyperping.errors import DiscoveryConfigError
from hyperping.logging.models import LogLevelName


@dataclass(slots=True)
class DiscoveryConfig:
    """
    Settings consumed by the discovery engine.

    Durations are seconds. ``initial_reconnect_delay`` defaults to
    ``min_connect_time`` when left as None.
    """

    # Directory query
    service_name: str | None = None
    namespace: str | None = None
    labels: str | None = None
    service_port: int = 0
    default_port: int = 61616
    transport_type: str = "tcp"

    # Polling
    query_interval: float = 30.0
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    operation_attempts: int = 3
    operation_sleep: float = 1.0

    # Peer backoff
    min_connect_time: float = 1.0
    initial_reconnect_delay: float | None = None
    max_reconnect_delay: float = 16.0
    max_reconnect_attempts: int = 4

    # Candidate filtering
    split_clusters_during_rolling_update: bool = False
    require_ready: bool = False
    skip_local_peer: bool = True
    local_address: str | None = None

    # Applied to the global logging config when the agent starts
    log_level: LogLevelName | None = None

    def __post_init__(self) -> None:
        if self.initial_reconnect_delay is None:
            self.initial_reconnect_delay = self.min_connect_time

        if not (self.service_name or self.namespace or self.labels):
            raise DiscoveryConfigError(
                "A service name or a namespace/label selector is required"
            )

        if self.operation_attempts < 1:
            raise DiscoveryConfigError("operation_attempts must be at least 1")

        if self.query_interval <= 0:
            raise DiscoveryConfigError("query_interval must be positive")

        for name in (
            "connect_timeout",
            "read_timeout",
            "operation_sleep",
            "min_connect_time",
            "initial_reconnect_delay",
            "max_reconnect_delay",
        ):
            if getattr(self, name) < 0:
                raise DiscoveryConfigError(f"{name} must not be negative")

        if self.max_reconnect_delay < self.initial_reconnect_delay:
            raise DiscoveryConfigError(
                "max_reconnect_delay must be >= initial_reconnect_delay"
            )

        if self.max_reconnect_attempts < 0:
            raise DiscoveryConfigError("max_reconnect_attempts must not be negative")

        if not (0 <= self.service_port <= 65535) or not (0 <= self.default_port <= 65535):
            raise DiscoveryConfigError("ports must be within 0-65535")

    @property
    def selector(self) -> DirectorySelector:
        return DirectorySelector(
            service_name=self.service_name,
            namespace=self.namespace,
            labels=self.labels,
        )

    @classmethod
    def from_env(cls, env: Env) -> "DiscoveryConfig":
        """Create a config instance from environment settings."""
        parser = TimeParser()

        initial_reconnect_delay: float | None = None
        if env.DISCOVERY_INITIAL_RECONNECT_DELAY:
            initial_reconnect_delay = parser.parse(env.DISCOVERY_INITIAL_RECONNECT_DELAY)

        return cls(
            service_name=env.DISCOVERY_SERVICE_NAME,
            namespace=env.DISCOVERY_NAMESPACE,
            labels=env.DISCOVERY_LABELS,
            service_port=env.DISCOVERY_SERVICE_PORT,
            default_port=env.DISCOVERY_DEFAULT_PORT,
            transport_type=env.DISCOVERY_TRANSPORT_TYPE,
            query_interval=parser.parse(env.DISCOVERY_QUERY_INTERVAL),
            connect_timeout=parser.parse(env.DISCOVERY_CONNECT_TIMEOUT),
            read_timeout=parser.parse(env.DISCOVERY_READ_TIMEOUT),
            operation_attempts=env.DISCOVERY_OPERATION_ATTEMPTS,
            operation_sleep=parser.parse(env.DISCOVERY_OPERATION_SLEEP),
            min_connect_time=parser.parse(env.DISCOVERY_MIN_CONNECT_TIME),
            initial_reconnect_delay=initial_reconnect_delay,
            max_reconnect_delay=parser.parse(env.DISCOVERY_MAX_RECONNECT_DELAY),
            max_reconnect_attempts=env.DISCOVERY_MAX_RECONNECT_ATTEMPTS,
            split_clusters_during_rolling_update=env.DISCOVERY_SPLIT_CLUSTERS_DURING_ROLLING_UPDATE,
            require_ready=env.DISCOVERY_REQUIRE_READY,
            skip_local_peer=env.DISCOVERY_SKIP_LOCAL_PEER,
            local_address=env.DISCOVERY_LOCAL_ADDRESS,
            log_level=env.DISCOVERY_LOG_LEVEL,
        )


def create_discovery_config_from_env(env: Env) -> DiscoveryConfig:
    """Create discovery config using Env values."""
    return DiscoveryConfig.from_env(env)
