"""
Per-peer failure handling with exponential reconnect backoff.

A failed peer is reported removed and re-admitted after a delay. Losing a
connection that had been up for at least ``min_connect_time`` counts as a
failure and retries after the peer's current reconnect delay, which doubles
on every reconnect up to ``max_reconnect_delay``. A peer that drops sooner
(flapping) is retried after exactly ``min_connect_time`` and is not counted.
Once ``max_reconnect_attempts`` failures accumulate the peer is evicted and
excluded for the rest of the process lifetime.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from hyperping.discovery.models.discovery_config import DiscoveryConfig
from hyperping.discovery.registry.peer_registry import PeerRegistry
from hyperping.discovery.transport.membership_notifier import MembershipNotifier
from hyperping.logging import Logger
from hyperping.logging.hyperping_logging_models import (
    DiscoveryDebug,
    DiscoveryError,
    DiscoveryWarning,
)


@dataclass(slots=True)
class BackoffPolicy:
    """Backoff settings, in seconds."""

    min_connect_time: float = 1.0
    initial_reconnect_delay: float = 1.0
    max_reconnect_delay: float = 16.0
    max_reconnect_attempts: int = 4

    @classmethod
    def from_config(cls, config: DiscoveryConfig) -> "BackoffPolicy":
        return cls(
            min_connect_time=config.min_connect_time,
            initial_reconnect_delay=config.initial_reconnect_delay,
            max_reconnect_delay=config.max_reconnect_delay,
            max_reconnect_attempts=config.max_reconnect_attempts,
        )

    def next_delay(self, reconnect_delay: float) -> float:
        return min(reconnect_delay * 2, self.max_reconnect_delay)

    def exhausted(self, connect_failures: int) -> bool:
        return (
            self.max_reconnect_attempts > 0
            and connect_failures >= self.max_reconnect_attempts
        )


@dataclass(slots=True)
class FailureOutcome:
    """What ``fail()`` decided for a peer."""

    key: str
    connect_failures: int
    retry_delay: float
    counted: bool
    excluded: bool


class BackoffScheduler:
    """
    Drives the failed -> reconnect transitions of tracked peers.

    Reconnects run as independent asyncio tasks whose handles are stored on
    the tracked peer, so evicting the peer cancels its pending reconnect.

    Usage:
        scheduler = BackoffScheduler(registry, notifier, BackoffPolicy())

        # transport reports that a peer is unreachable
        await scheduler.fail("10.0.0.5:61616")
    """

    def __init__(
        self,
        registry: PeerRegistry,
        notifier: MembershipNotifier,
        policy: BackoffPolicy | None = None,
        service: str = "",
        logger: Logger | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._registry = registry
        self._notifier = notifier
        self._policy = policy or BackoffPolicy()
        self._service = service
        self._logger = logger or Logger()
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def policy(self) -> BackoffPolicy:
        return self._policy

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def fail(self, key: str) -> FailureOutcome | None:
        """
        Transition a peer to failed and schedule its reconnect.

        No-op (returns None) when the peer is untracked, already failed, or
        the scheduler is shut down.

        A failure reported by a transport callback, while the reporting task
        still holds a peer lock, is deferred to its own task and applied once
        that lock is released. It also returns None.
        """
        if self._closed:
            return None

        if self._registry.holds_lock():
            self._defer_fail(key)
            return None

        async with self._registry.locked(key) as peer:
            if peer is None or peer.failed:
                return None

            now = self._clock()
            counted = peer.connected_for(now) >= self._policy.min_connect_time

            if counted:
                peer.connect_failures += 1
                retry_delay = peer.reconnect_delay

            else:
                retry_delay = self._policy.min_connect_time

            peer.failed = True
            peer.failed_at = now

            await self._notifier.removed(key)

            outcome = FailureOutcome(
                key=key,
                connect_failures=peer.connect_failures,
                retry_delay=retry_delay,
                counted=counted,
                excluded=False,
            )

            if self._policy.exhausted(peer.connect_failures):
                self._registry.exclude(key)
                outcome.excluded = True

                await self._logger.log(
                    DiscoveryWarning(
                        message=(
                            f"Reconnect attempts exceeded after {self._policy.max_reconnect_attempts} tries. "
                            f"Reconnecting has been disabled for: {key}"
                        ),
                        service=self._service,
                        peer=key,
                    )
                )
                return outcome

            if self._closed:
                return outcome

            peer.cancel_backoff()
            task = asyncio.create_task(self._reconnect_after(key, retry_delay))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            peer.backoff_handle = task

            await self._logger.log(
                DiscoveryDebug(
                    message=(
                        f"Scheduled reconnect in {retry_delay}s "
                        f"(failures={peer.connect_failures}, counted={counted})"
                    ),
                    service=self._service,
                    peer=key,
                )
            )

            return outcome

    async def reconnect(self, key: str) -> bool:
        """
        Re-admit a failed peer, doubling its reconnect delay.

        Returns False without notifying when the peer was evicted, is no
        longer failed, or the scheduler is shut down.
        """
        if self._closed:
            return False

        async with self._registry.locked(key) as peer:
            if peer is None or not peer.failed:
                return False

            if peer.backoff_handle is asyncio.current_task():
                peer.backoff_handle = None

            else:
                peer.cancel_backoff()

            peer.reconnect_delay = self._policy.next_delay(peer.reconnect_delay)
            peer.connect_time = self._clock()
            peer.failed = False

            return await self._notifier.added(peer.record)

    def _defer_fail(self, key: str) -> None:
        task = asyncio.create_task(self._fail_later(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fail_later(self, key: str) -> None:
        try:
            await self._logger.log(
                DiscoveryDebug(
                    message="Failure reported during a notification, applying after it completes",
                    service=self._service,
                    peer=key,
                )
            )
            await self.fail(key)

        except asyncio.CancelledError:
            raise

        except Exception as err:
            await self._logger.log(
                DiscoveryError(
                    message=f"Deferred failure handling failed: {err}",
                    service=self._service,
                    peer=key,
                )
            )

    async def _reconnect_after(self, key: str, delay: float) -> None:
        try:
            await self._sleep(delay)
            await self.reconnect(key)

        except asyncio.CancelledError:
            raise

        except Exception as err:
            await self._logger.log(
                DiscoveryError(
                    message=f"Reconnect failed: {err}",
                    service=self._service,
                    peer=key,
                )
            )

    async def drain(self) -> None:
        """Wait for every scheduled reconnect and deferred failure to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel every pending reconnect and refuse further transitions."""
        self._closed = True

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._tasks.clear()
