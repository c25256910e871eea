"""
Membership discovery lifecycle.

The agent owns one poll task that runs a reconciliation cycle every
``query_interval`` seconds, plus the backoff scheduler that reconnect
tasks run under. The directory client and the membership transport are
injected; the agent owns no network listener.
"""

import asyncio
import socket
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import orjson

from hyperping.discovery.backoff.backoff_scheduler import (
    BackoffPolicy,
    BackoffScheduler,
    FailureOutcome,
)
from hyperping.discovery.directory.directory_client import DirectoryClient
from hyperping.discovery.models.discovery_config import DiscoveryConfig
from hyperping.discovery.models.tracked_peer import TrackedPeer
from hyperping.discovery.partition.rolling_update_partitioner import (
    RollingUpdatePartitioner,
)
from hyperping.discovery.reconcile.reconciliation_cycle import (
    CycleResult,
    ReconciliationCycle,
)
from hyperping.discovery.registry.peer_registry import PeerRegistry
from hyperping.discovery.transport.membership_notifier import MembershipNotifier
from hyperping.discovery.transport.membership_transport import MembershipTransport
from hyperping.errors import DiscoveryConfigError
from hyperping.logging import Logger, LoggingConfig
from hyperping.logging.hyperping_logging_models import (
    DiscoveryError,
    DiscoveryInfo,
    DiscoveryWarning,
)
from hyperping.reliability import RetryExecutor


class DiscoveryAgent:
    """
    Periodically reconciles directory observations into membership events.

    Example usage:
        agent = DiscoveryAgent(
            config,
            directory=DNSDirectoryClient(service_port=config.service_port),
            transport=CallbackMembershipTransport(
                on_peer_added=connect_to,
                on_peer_removed=disconnect_from,
            ),
        )

        handle = await agent.start()

        # transport reports a dropped connection
        await agent.peer_failed("10.0.0.5:61616")

        await handle.stop()
    """

    def __init__(
        self,
        config: DiscoveryConfig,
        directory: DirectoryClient,
        transport: MembershipTransport,
        partitioner: RollingUpdatePartitioner | None = None,
        retry: RetryExecutor | None = None,
        logger: Logger | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or Logger()
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._service = config.selector.describe()

        self._registry = PeerRegistry(
            initial_reconnect_delay=config.initial_reconnect_delay,
            clock=self._clock,
        )
        self._notifier = MembershipNotifier(
            transport,
            self._service,
            logger=self._logger,
        )
        self._scheduler = BackoffScheduler(
            self._registry,
            self._notifier,
            policy=BackoffPolicy.from_config(config),
            service=self._service,
            logger=self._logger,
            clock=self._clock,
            sleep=self._sleep,
        )
        self._cycle = ReconciliationCycle(
            config,
            directory,
            self._registry,
            self._notifier,
            partitioner=partitioner,
            retry=retry,
            logger=self._logger,
            clock=self._clock,
        )

        self._poll_task: asyncio.Task | None = None
        self._handle: DiscoveryHandle | None = None
        self._stopped = False
        self._last_result: CycleResult | None = None
        self._cycles = 0

    @property
    def config(self) -> DiscoveryConfig:
        return self._config

    @property
    def registry(self) -> PeerRegistry:
        return self._registry

    @property
    def scheduler(self) -> BackoffScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def local_address(self) -> str | None:
        return self._cycle.local_address

    @property
    def last_result(self) -> CycleResult | None:
        return self._last_result

    async def start(self) -> "DiscoveryHandle":
        """
        Start polling the directory.

        Raises:
            DiscoveryConfigError: The agent was already stopped
        """
        if self._stopped:
            raise DiscoveryConfigError(
                f"Discovery for {self._service} was stopped and cannot be restarted"
            )

        if self._handle is not None:
            return self._handle

        if self._config.log_level:
            LoggingConfig().update(log_level=self._config.log_level)

        if self._cycle.local_address is None and self._needs_local_address():
            self._cycle.local_address = await self._detect_local_address()

        await self._logger.log(
            DiscoveryInfo(
                message=(
                    f"Starting discovery every {self._config.query_interval}s "
                    f"(local address: {self._cycle.local_address or 'unknown'})"
                ),
                service=self._service,
            )
        )

        self._poll_task = asyncio.create_task(self._poll_loop())
        self._handle = DiscoveryHandle(self)
        return self._handle

    async def stop(self) -> None:
        """
        Stop polling and cancel every pending reconnect.

        No membership notification is delivered after this returns.
        """
        if self._stopped:
            return

        self._stopped = True
        self._notifier.close()

        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass

            self._poll_task = None

        await self._scheduler.shutdown()
        self._registry.clear()

        await self._logger.log(
            DiscoveryInfo(
                message="Stopped discovery",
                service=self._service,
            )
        )

    async def reconcile(self) -> CycleResult:
        """Run a single reconciliation cycle now."""
        result = await self._cycle.run()
        self._last_result = result
        self._cycles += 1
        return result

    async def peer_failed(self, key: str) -> FailureOutcome | None:
        """Report that the transport lost its connection to a peer."""
        return await self._scheduler.fail(key)

    def snapshot(self) -> list[TrackedPeer]:
        return self._registry.snapshot()

    def status(self) -> dict[str, Any]:
        now = self._clock()

        return {
            "service": self._service,
            "running": self.running,
            "local_address": self._cycle.local_address,
            "cycles": self._cycles,
            "pending_reconnects": self._scheduler.pending,
            "excluded": sorted(self._registry.excluded),
            "last_cycle": (
                self._last_result.to_dict() if self._last_result is not None else None
            ),
            "peers": [
                {
                    "key": peer.key,
                    "uri": peer.record.uri(self._config.transport_type),
                    "group_key": peer.record.group_key,
                    "failed": peer.failed,
                    "connect_failures": peer.connect_failures,
                    "reconnect_delay": peer.reconnect_delay,
                    "connected_for": peer.connected_for(now),
                }
                for peer in sorted(self._registry.snapshot(), key=lambda peer: peer.key)
            ],
        }

    def status_json(self) -> bytes:
        return orjson.dumps(self.status())

    def _needs_local_address(self) -> bool:
        return (
            self._config.skip_local_peer
            or self._config.split_clusters_during_rolling_update
        )

    async def _detect_local_address(self) -> str | None:
        hostname = socket.gethostname()
        loop = asyncio.get_running_loop()

        try:
            infos = await loop.getaddrinfo(
                hostname,
                None,
                family=socket.AF_INET,
                type=socket.SOCK_STREAM,
            )

        except OSError as err:
            await self._logger.log(
                DiscoveryWarning(
                    message=f"Could not determine the local address of {hostname}: {err}",
                    service=self._service,
                )
            )
            return None

        for _, _, _, _, sockaddr in infos:
            return sockaddr[0]

        await self._logger.log(
            DiscoveryWarning(
                message=f"Could not determine the local address of {hostname}",
                service=self._service,
            )
        )
        return None

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.reconcile()

            except asyncio.CancelledError:
                raise

            except Exception as cycle_error:
                await self._logger.log(
                    DiscoveryError(
                        message=f"Discovery cycle failed: {cycle_error}",
                        service=self._service,
                    )
                )

            await self._sleep(self._config.query_interval)


@dataclass(slots=True)
class DiscoveryHandle:
    """Owned handle to a running discovery agent."""

    agent: DiscoveryAgent

    @property
    def running(self) -> bool:
        return self.agent.running

    async def stop(self) -> None:
        await self.agent.stop()

    def snapshot(self) -> list[TrackedPeer]:
        return self.agent.snapshot()


async def start_discovery(
    config: DiscoveryConfig,
    directory: DirectoryClient,
    transport: MembershipTransport,
    **kwargs: Any,
) -> DiscoveryHandle:
    """Create a discovery agent and start polling."""
    agent = DiscoveryAgent(config, directory, transport, **kwargs)
    return await agent.start()


async def stop_discovery(handle: DiscoveryHandle) -> None:
    await handle.stop()
