"""
Tests for the static and DNS directory clients.
"""

import pytest

from hyperping.discovery import (
    AsyncDNSResolver,
    DirectoryClient,
    DirectorySelector,
    DNSDirectoryClient,
    DNSError,
    DNSResult,
    PeerRecord,
    SRVRecord,
    StaticDirectoryClient,
)
from hyperping.errors import DirectoryError


SELECTOR = DirectorySelector(service_name="brokers.test.local")


class FakeResolver:
    """Answers lookups from in-memory tables."""

    def __init__(
        self,
        addresses: dict[str, list[str]] | None = None,
        srv: dict[str, list[SRVRecord]] | None = None,
    ) -> None:
        self._addresses = addresses or {}
        self._srv = srv or {}
        self.srv_queries: list[str] = []

    is_srv_pattern = staticmethod(AsyncDNSResolver.is_srv_pattern)

    async def resolve_srv(self, service_name: str) -> list[SRVRecord]:
        self.srv_queries.append(service_name)

        records = self._srv.get(service_name)
        if not records:
            raise DNSError(service_name, "No SRV records returned")

        return records

    async def resolve(self, hostname: str, port: int | None = None) -> DNSResult:
        addresses = self._addresses.get(hostname)
        if not addresses:
            raise DNSError(hostname, "No addresses returned")

        return DNSResult(hostname=hostname, addresses=addresses, port=port)


class TestStaticDirectoryClient:
    """Test the in-memory directory."""

    def test_satisfies_protocol(self):
        assert isinstance(StaticDirectoryClient(), DirectoryClient)

    @pytest.mark.asyncio
    async def test_returns_configured_peers(self):
        record = PeerRecord(address="10.0.0.1", port=61616)
        directory = StaticDirectoryClient([record])

        assert await directory.list_peers(SELECTOR) == [record]
        assert directory.calls == 1

    @pytest.mark.asyncio
    async def test_from_seeds(self):
        directory = StaticDirectoryClient.from_seeds(
            ["10.0.0.1:7800", "10.0.0.2"],
            default_port=61616,
        )

        peers = await directory.list_peers(SELECTOR)

        assert [peer.key for peer in peers] == ["10.0.0.1:7800", "10.0.0.2:61616"]

    @pytest.mark.asyncio
    async def test_fail_next_raises_then_recovers(self):
        directory = StaticDirectoryClient([PeerRecord(address="10.0.0.1")])
        directory.fail_next(1)

        with pytest.raises(DirectoryError) as error:
            await directory.list_peers(SELECTOR)

        assert error.value.query == "brokers.test.local"
        assert len(await directory.list_peers(SELECTOR)) == 1


class TestDNSDirectoryClient:
    """Test DNS answers mapped to peer records."""

    @pytest.mark.asyncio
    async def test_plain_name_uses_configured_port(self):
        resolver = FakeResolver(addresses={"brokers.test.local": ["10.0.0.1", "10.0.0.2"]})
        client = DNSDirectoryClient(resolver, service_port=7800)

        peers = await client.list_peers(SELECTOR)

        assert [peer.key for peer in peers] == ["10.0.0.1:7800", "10.0.0.2:7800"]
        assert resolver.srv_queries == []

    @pytest.mark.asyncio
    async def test_plain_name_takes_port_from_srv(self, recording_logger):
        resolver = FakeResolver(
            addresses={"brokers.test.local": ["10.0.0.1"]},
            srv={"brokers.test.local": [SRVRecord(priority=0, weight=0, port=5672, target="b0")]},
        )
        client = DNSDirectoryClient(resolver, logger=recording_logger)

        peers = await client.list_peers(SELECTOR)

        assert peers[0].port == 5672
        assert client.service_port == 5672

    @pytest.mark.asyncio
    async def test_plain_name_falls_back_to_default_port(self, recording_logger):
        resolver = FakeResolver(addresses={"brokers.test.local": ["10.0.0.1"]})
        client = DNSDirectoryClient(resolver, default_port=61616, logger=recording_logger)

        peers = await client.list_peers(SELECTOR)

        assert peers[0].port == 61616
        assert len(recording_logger.warnings) == 1

    @pytest.mark.asyncio
    async def test_srv_name_resolves_each_target(self, recording_logger):
        name = "_amq._tcp.brokers.test.local"
        resolver = FakeResolver(
            addresses={
                "b0.test.local": ["10.0.0.1"],
                "b1.test.local": ["10.0.0.2"],
            },
            srv={
                name: [
                    SRVRecord(priority=0, weight=0, port=61616, target="b0.test.local"),
                    SRVRecord(priority=0, weight=0, port=61617, target="b1.test.local"),
                    SRVRecord(priority=1, weight=0, port=61618, target="gone.test.local"),
                ],
            },
        )
        client = DNSDirectoryClient(resolver, logger=recording_logger)

        peers = await client.list_peers(DirectorySelector(service_name=name))

        assert [peer.key for peer in peers] == ["10.0.0.1:61616", "10.0.0.2:61617"]
        assert peers[0].name == "b0.test.local"
        assert len(recording_logger.warnings) == 1

    @pytest.mark.asyncio
    async def test_srv_name_with_no_resolvable_targets_raises(self, recording_logger):
        name = "_amq._tcp.brokers.test.local"
        resolver = FakeResolver(
            srv={name: [SRVRecord(priority=0, weight=0, port=61616, target="gone.test.local")]},
        )
        client = DNSDirectoryClient(resolver, logger=recording_logger)

        with pytest.raises(DNSError):
            await client.list_peers(DirectorySelector(service_name=name))

    @pytest.mark.asyncio
    async def test_unknown_name_raises(self):
        client = DNSDirectoryClient(FakeResolver(), service_port=7800)

        with pytest.raises(DirectoryError):
            await client.list_peers(SELECTOR)

    @pytest.mark.asyncio
    async def test_selector_without_name_raises(self):
        client = DNSDirectoryClient(FakeResolver())

        with pytest.raises(DNSError):
            await client.list_peers(DirectorySelector(namespace="amq"))


class TestAsyncDNSResolver:
    """Test resolver helpers that need no network."""

    def test_srv_pattern_detection(self):
        assert AsyncDNSResolver.is_srv_pattern("_amq._tcp.brokers.local")
        assert AsyncDNSResolver.is_srv_pattern("_ping._udp.cache.local")
        assert not AsyncDNSResolver.is_srv_pattern("brokers.local")
