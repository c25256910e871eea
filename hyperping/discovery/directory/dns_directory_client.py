"""
DNS-backed directory client.

SRV names (``_svc._tcp.domain``) yield one peer per resolved target
address, each with its SRV port. Plain names yield one peer per A/AAAA
address using the configured service port. When no port is configured
the port is looked up once from the name's SRV record, falling back to
``default_port``.
"""

from typing import Sequence

from hyperping.discovery.dns.resolver import AsyncDNSResolver, DNSError
from hyperping.discovery.models.directory_selector import DirectorySelector
from hyperping.discovery.models.peer_record import PeerRecord
from hyperping.logging import Logger
from hyperping.logging.hyperping_logging_models import DiscoveryInfo, DiscoveryWarning


class DNSDirectoryClient:
    def __init__(
        self,
        resolver: AsyncDNSResolver | None = None,
        service_port: int = 0,
        default_port: int = 61616,
        logger: Logger | None = None,
    ) -> None:
        self._resolver = resolver or AsyncDNSResolver()
        self._service_port = service_port
        self._default_port = default_port
        self._logger = logger or Logger()

    @property
    def service_port(self) -> int:
        return self._service_port

    async def list_peers(self, selector: DirectorySelector) -> Sequence[PeerRecord]:
        service_name = selector.service_name
        if not service_name:
            raise DNSError(selector.describe(), "DNS discovery requires a service name")

        if self._resolver.is_srv_pattern(service_name):
            return await self._list_srv_peers(service_name)

        port = await self._get_service_port(service_name)
        result = await self._resolver.resolve(service_name, port)

        return [
            PeerRecord(address=address, port=port, name=service_name)
            for address in result.addresses
        ]

    async def _list_srv_peers(self, service_name: str) -> list[PeerRecord]:
        srv_records = await self._resolver.resolve_srv(service_name)

        records: list[PeerRecord] = []
        seen: set[str] = set()

        for srv_record in srv_records:
            try:
                target = await self._resolver.resolve(srv_record.target, srv_record.port)

            except DNSError as err:
                # One unresolvable target must not hide the others.
                await self._logger.log(
                    DiscoveryWarning(
                        message=f"Skipping SRV target: {err}",
                        service=service_name,
                        peer=srv_record.target,
                    )
                )
                continue

            for address in target.addresses:
                record = PeerRecord(
                    address=address,
                    port=srv_record.port,
                    name=srv_record.target,
                )
                if record.key not in seen:
                    seen.add(record.key)
                    records.append(record)

        if not records:
            raise DNSError(
                service_name,
                "All SRV target hostnames failed to resolve to IP addresses",
            )

        return records

    async def _get_service_port(self, service_name: str) -> int:
        if self._service_port > 0:
            return self._service_port

        try:
            srv_records = await self._resolver.resolve_srv(service_name)
            self._service_port = srv_records[0].port

            await self._logger.log(
                DiscoveryInfo(
                    message=f"Using port {self._service_port} from SRV record",
                    service=service_name,
                )
            )

        except DNSError as err:
            self._service_port = self._default_port

            await self._logger.log(
                DiscoveryWarning(
                    message=f"Error retrieving service port ({err}). {self._default_port} will be used.",
                    service=service_name,
                )
            )

        return self._service_port
