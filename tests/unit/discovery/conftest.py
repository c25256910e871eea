import asyncio

import pytest

from hyperping.discovery import (
    BackoffPolicy,
    BackoffScheduler,
    DiscoveryConfig,
    MembershipNotifier,
    PeerRecord,
    PeerRegistry,
    ReconciliationCycle,
    StaticDirectoryClient,
)
from hyperping.logging import Entry, LogLevel
from hyperping.reliability import RetryConfig, RetryExecutor


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingLogger:
    """Collects log entries instead of writing them."""

    def __init__(self) -> None:
        self.entries: list[Entry] = []

    async def log(self, entry: Entry, *args, **kwargs) -> None:
        self.entries.append(entry)

    def at_level(self, level: LogLevel) -> list[Entry]:
        return [entry for entry in self.entries if entry.level == level]

    @property
    def warnings(self) -> list[Entry]:
        return self.at_level(LogLevel.WARN)


class RecordingTransport:
    """Membership transport that records every notification in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.records: dict[str, PeerRecord] = {}
        self.fail_on_add: set[str] = set()

    async def on_peer_added(self, record: PeerRecord) -> None:
        self.events.append(("added", record.key))
        self.records[record.key] = record

        if record.key in self.fail_on_add:
            raise ConnectionError(f"cannot connect to {record.key}")

    async def on_peer_removed(self, key: str) -> None:
        self.events.append(("removed", key))

    @property
    def added(self) -> list[str]:
        return [key for kind, key in self.events if kind == "added"]

    @property
    def removed(self) -> list[str]:
        return [key for kind, key in self.events if kind == "removed"]

    def clear(self) -> None:
        self.events.clear()


class RecordingSleeper:
    """
    Records requested delays instead of sleeping.

    Sleeps yield once and return, unless held, in which case they wait
    until released.
    """

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._gate: asyncio.Event | None = None

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        gate = self._gate
        self._gate = None

        if gate is not None:
            gate.set()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

        if self._gate is not None:
            await self._gate.wait()

        else:
            await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def retry_sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def config() -> DiscoveryConfig:
    return DiscoveryConfig(
        service_name="brokers.test.local",
        query_interval=30.0,
        operation_attempts=3,
        operation_sleep=1.0,
        min_connect_time=1.0,
        max_reconnect_delay=16.0,
        max_reconnect_attempts=4,
        skip_local_peer=False,
    )


@pytest.fixture
def registry(config: DiscoveryConfig, clock: FakeClock) -> PeerRegistry:
    return PeerRegistry(
        initial_reconnect_delay=config.initial_reconnect_delay,
        clock=clock,
    )


@pytest.fixture
def notifier(
    transport: RecordingTransport,
    recording_logger: RecordingLogger,
) -> MembershipNotifier:
    return MembershipNotifier(
        transport,
        "brokers.test.local",
        logger=recording_logger,
    )


@pytest.fixture
def scheduler(
    config: DiscoveryConfig,
    registry: PeerRegistry,
    notifier: MembershipNotifier,
    recording_logger: RecordingLogger,
    clock: FakeClock,
    sleeper: RecordingSleeper,
) -> BackoffScheduler:
    return BackoffScheduler(
        registry,
        notifier,
        policy=BackoffPolicy.from_config(config),
        service="brokers.test.local",
        logger=recording_logger,
        clock=clock,
        sleep=sleeper,
    )


@pytest.fixture
def directory() -> StaticDirectoryClient:
    return StaticDirectoryClient()


@pytest.fixture
def make_cycle(
    config: DiscoveryConfig,
    directory: StaticDirectoryClient,
    registry: PeerRegistry,
    notifier: MembershipNotifier,
    recording_logger: RecordingLogger,
    clock: FakeClock,
    retry_sleeper: RecordingSleeper,
):
    def factory(
        cycle_config: DiscoveryConfig | None = None,
        local_address: str | None = None,
    ) -> ReconciliationCycle:
        cycle_config = cycle_config or config

        return ReconciliationCycle(
            cycle_config,
            directory,
            registry,
            notifier,
            retry=RetryExecutor(
                RetryConfig(
                    max_attempts=cycle_config.operation_attempts,
                    delay=cycle_config.operation_sleep,
                ),
                logger=recording_logger,
                sleep=retry_sleeper,
            ),
            local_address=local_address,
            logger=recording_logger,
            clock=clock,
        )

    return factory
