"""
One poll-diff-notify iteration of membership discovery.

Each tick resolves the directory, filters the candidates, diffs them
against the tracked peers and applies the difference:

- removed keys are reported removed (unless already failed) and evicted
- retained keys are refreshed; failed peers that had been healthy for at
  least ``min_connect_time`` before failing are restored and re-added
- added keys are tracked and reported added

A failed resolution ends the tick without touching membership, so an
outage is never read as "every peer left".
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import orjson

from hyperping.discovery.directory.directory_client import DirectoryClient
from hyperping.discovery.models.discovery_config import DiscoveryConfig
from hyperping.discovery.models.peer_record import PeerRecord
from hyperping.discovery.partition.rolling_update_partitioner import (
    PartitionResult,
    RollingUpdatePartitioner,
)
from hyperping.discovery.registry.peer_registry import PeerRegistry
from hyperping.discovery.transport.membership_notifier import MembershipNotifier
from hyperping.logging import Logger
from hyperping.logging.hyperping_logging_models import (
    DiscoveryDebug,
    DiscoveryWarning,
)
from hyperping.reliability import RetryConfig, RetryExecutor


@dataclass(slots=True)
class CycleResult:
    """Membership changes applied by one tick."""

    resolved: bool
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    restored: list[str] = field(default_factory=list)
    partition: PartitionResult | None = None

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.restored)

    def to_dict(self) -> dict[str, Any]:
        partition: dict[str, Any] | None = None
        if self.partition is not None:
            partition = {
                "group_key": self.partition.group_key,
                "partitioned": self.partition.partitioned,
                "warning": self.partition.warning,
                "members": [member.key for member in self.partition.members],
                "dropped": [member.key for member in self.partition.dropped],
            }

        return {
            "resolved": self.resolved,
            "added": self.added,
            "removed": self.removed,
            "restored": self.restored,
            "partition": partition,
        }

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())


class ReconciliationCycle:
    """
    Reconciles directory observations against the peer registry.

    Running a tick twice against an unchanged directory emits nothing the
    second time.

    Usage:
        cycle = ReconciliationCycle(config, directory, registry, notifier)

        result = await cycle.run()
        if result.resolved and result.changed:
            ...
    """

    def __init__(
        self,
        config: DiscoveryConfig,
        directory: DirectoryClient,
        registry: PeerRegistry,
        notifier: MembershipNotifier,
        partitioner: RollingUpdatePartitioner | None = None,
        retry: RetryExecutor | None = None,
        local_address: str | None = None,
        logger: Logger | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config
        self._directory = directory
        self._registry = registry
        self._notifier = notifier
        self._partitioner = partitioner or RollingUpdatePartitioner()
        self._logger = logger or Logger()
        self._retry = retry or RetryExecutor(
            RetryConfig(
                max_attempts=config.operation_attempts,
                delay=config.operation_sleep,
            ),
            logger=self._logger,
        )
        self._clock = clock or time.monotonic
        self._selector = config.selector
        self._service = self._selector.describe()

        self.local_address = local_address or config.local_address

    async def run(self) -> CycleResult:
        candidates = await self._resolve()
        if candidates is None:
            await self._logger.log(
                DiscoveryWarning(
                    message=(
                        f"Directory lookup failed after {self._config.operation_attempts} attempt(s). "
                        "Keeping current membership for this tick."
                    ),
                    service=self._service,
                )
            )
            return CycleResult(resolved=False)

        result = CycleResult(resolved=True)
        members = await self._filter(candidates, result)

        observed: dict[str, PeerRecord] = {}
        for record in members:
            observed.setdefault(record.key, record)

        tracked = self._registry.keys()
        observed_keys = set(observed)

        removed = sorted(tracked - observed_keys)
        retained = sorted(tracked & observed_keys)
        added = sorted(observed_keys - tracked)

        for key in removed:
            if await self._apply_removed(key):
                result.removed.append(key)

        for key in retained:
            if await self._apply_retained(key, observed[key]):
                result.restored.append(key)

        for key in added:
            if await self._apply_added(key, observed[key]):
                result.added.append(key)

        if result.changed:
            await self._logger.log(
                DiscoveryDebug(
                    message=(
                        f"Reconciled {len(observed)} peer(s): "
                        f"{len(result.added)} added, {len(result.removed)} removed, "
                        f"{len(result.restored)} restored"
                    ),
                    service=self._service,
                )
            )

        return result

    async def _resolve(self) -> Sequence[PeerRecord] | None:
        return await self._retry.execute(
            self._list_peers,
            operation_name=f"list peers for {self._service}",
            required=False,
        )

    async def _list_peers(self) -> Sequence[PeerRecord]:
        # Each attempt gets the full connect + read budget of one request.
        timeout = self._config.connect_timeout + self._config.read_timeout
        if timeout > 0:
            return await asyncio.wait_for(
                self._directory.list_peers(self._selector),
                timeout=timeout,
            )

        return await self._directory.list_peers(self._selector)

    async def _filter(
        self,
        candidates: Sequence[PeerRecord],
        result: CycleResult,
    ) -> list[PeerRecord]:
        members = list(candidates)

        if self._config.require_ready:
            members = [record for record in members if record.ready]

        members = [
            record for record in members if not self._registry.is_excluded(record.key)
        ]

        if self._config.split_clusters_during_rolling_update:
            partition = self._partitioner.partition(members, self.local_address)
            result.partition = partition

            if partition.warning:
                await self._logger.log(
                    DiscoveryWarning(
                        message=partition.warning,
                        service=self._service,
                    )
                )

            members = partition.members

        if self._config.skip_local_peer and self.local_address:
            members = [
                record for record in members if record.address != self.local_address
            ]

        return members

    async def _apply_removed(self, key: str) -> bool:
        async with self._registry.locked(key) as peer:
            if peer is None:
                return False

            notified = False
            if not peer.failed:
                await self._notifier.removed(key)
                notified = True

            self._registry.remove(key)
            return notified

    async def _apply_retained(self, key: str, record: PeerRecord) -> bool:
        async with self._registry.locked(key) as peer:
            if peer is None:
                return False

            peer.record = record
            now = self._clock()
            min_connect_time = self._config.min_connect_time

            if not peer.failed:
                if peer.connected_for(now) >= min_connect_time:
                    peer.connect_failures = 0
                    peer.reconnect_delay = self._config.initial_reconnect_delay

                return False

            # Flapping peers stay under backoff control.
            if peer.connected_for(now) < min_connect_time:
                return False

            peer.cancel_backoff()
            peer.failed = False
            peer.connect_failures = 0
            peer.reconnect_delay = self._config.initial_reconnect_delay
            peer.connect_time = now

            await self._notifier.added(record)
            return True

    async def _apply_added(self, key: str, record: PeerRecord) -> bool:
        async with self._registry.locked(key, create=True) as peer:
            if peer is not None:
                return False

            self._registry.upsert(key, record)
            await self._notifier.added(record)
            return True
