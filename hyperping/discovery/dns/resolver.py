"""
Async DNS resolver for directory lookups.

Resolves A/AAAA records through the event loop's getaddrinfo and SRV
records through aiodns. Results are never cached: every reconciliation
cycle must observe the directory as it is now.
"""

import asyncio
import socket
from dataclasses import dataclass, field

import aiodns

from hyperping.errors import DirectoryError


class DNSError(DirectoryError):
    """Raised when DNS resolution fails."""

    def __init__(self, hostname: str, message: str):
        self.hostname = hostname
        super().__init__(hostname, message)


@dataclass(slots=True)
class SRVRecord:
    """Represents a DNS SRV record."""

    priority: int
    """Priority of the target host (lower values are preferred)."""

    weight: int
    """Weight for hosts with the same priority (for load balancing)."""

    port: int
    """Port number of the service."""

    target: str
    """Target hostname."""


@dataclass(slots=True)
class DNSResult:
    """Result of an address lookup."""

    hostname: str
    """The hostname that was resolved."""

    addresses: list[str]
    """Resolved IP addresses, in resolver order without duplicates."""

    port: int | None = None
    """Port the lookup was made for (if any)."""


@dataclass
class AsyncDNSResolver:
    """
    Async DNS resolver without caching.

    Usage:
        resolver = AsyncDNSResolver()

        # A/AAAA record resolution
        result = await resolver.resolve("broker.amq.svc.cluster.local")

        # SRV record resolution
        records = await resolver.resolve_srv("_amq._tcp.broker.amq.svc.cluster.local")
    """

    max_concurrent_resolutions: int = 10
    """Maximum concurrent DNS resolutions."""

    resolution_timeout_seconds: float = 5.0
    """Timeout for individual DNS resolution."""

    _resolution_semaphore: asyncio.Semaphore | None = field(default=None, repr=False)
    """Semaphore to limit concurrent resolutions."""

    _aiodns_resolver: aiodns.DNSResolver | None = field(default=None, repr=False)
    """Internal aiodns resolver for SRV queries."""

    @staticmethod
    def is_srv_pattern(hostname: str) -> bool:
        """
        Check if a hostname follows the SRV record pattern.

        SRV patterns start with '_' and contain either '._tcp.' or '._udp.'
        Examples:
            - _amq._tcp.broker.amq.svc.cluster.local
            - _ping._udp.cache.local
        """
        return hostname.startswith("_") and ("._tcp." in hostname or "._udp." in hostname)

    async def resolve_srv(self, service_name: str) -> list[SRVRecord]:
        """
        Resolve a DNS SRV record.

        Returns:
            SRVRecords sorted by priority (ascending) then weight (descending)

        Raises:
            DNSError: If the SRV query fails or returns no records
        """
        # aiodns needs a running loop, so it is created lazily.
        if self._aiodns_resolver is None:
            self._aiodns_resolver = aiodns.DNSResolver()

        try:
            srv_results = await asyncio.wait_for(
                self._aiodns_resolver.query(service_name, "SRV"),
                timeout=self.resolution_timeout_seconds,
            )

        except asyncio.TimeoutError:
            raise DNSError(
                service_name,
                f"SRV resolution timeout ({self.resolution_timeout_seconds}s)",
            )
        except aiodns.error.DNSError as exc:
            raise DNSError(service_name, f"SRV query failed: {exc}")

        if not srv_results:
            raise DNSError(service_name, "No SRV records returned")

        records = [
            SRVRecord(
                priority=srv.priority,
                weight=srv.weight,
                port=srv.port,
                target=srv.host.rstrip("."),
            )
            for srv in srv_results
        ]
        records.sort(key=lambda r: (r.priority, -r.weight))

        return records

    async def resolve(self, hostname: str, port: int | None = None) -> DNSResult:
        """
        Resolve a hostname to IP addresses.

        Raises:
            DNSError: If resolution fails or yields no addresses
        """
        if self._resolution_semaphore is None:
            self._resolution_semaphore = asyncio.Semaphore(
                self.max_concurrent_resolutions
            )

        async with self._resolution_semaphore:
            try:
                results = await asyncio.wait_for(
                    asyncio.get_running_loop().getaddrinfo(
                        hostname,
                        port or 0,
                        family=socket.AF_UNSPEC,
                        type=socket.SOCK_STREAM,
                    ),
                    timeout=self.resolution_timeout_seconds,
                )

            except asyncio.TimeoutError:
                raise DNSError(
                    hostname, f"Resolution timeout ({self.resolution_timeout_seconds}s)"
                )
            except socket.gaierror as exc:
                raise DNSError(hostname, f"getaddrinfo failed: {exc}")

        if not results:
            raise DNSError(hostname, "No addresses returned")

        addresses: list[str] = []
        seen: set[str] = set()

        for family, type_, proto, canonname, sockaddr in results:
            # sockaddr is (host, port) for IPv4, (host, port, flow, scope) for IPv6
            addr = sockaddr[0]
            if addr not in seen:
                seen.add(addr)
                addresses.append(addr)

        return DNSResult(
            hostname=hostname,
            addresses=addresses,
            port=port,
        )
