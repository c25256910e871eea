from hyperping.discovery.models.peer_record import PeerRecord
from hyperping.logging import Logger
from hyperping.logging.hyperping_logging_models import (
    DiscoveryError,
    DiscoveryInfo,
)

from .membership_transport import MembershipTransport


class MembershipNotifier:
    """
    Forwards membership changes to the transport.

    A transport failure is logged and swallowed so one bad notification
    cannot abort a reconciliation cycle or a backoff task. Once closed,
    nothing further reaches the transport.
    """

    def __init__(
        self,
        transport: MembershipTransport,
        service: str,
        logger: Logger | None = None,
    ) -> None:
        self._transport = transport
        self._service = service
        self._logger = logger or Logger()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    async def added(self, record: PeerRecord) -> bool:
        if self._closed:
            return False

        await self._logger.log(
            DiscoveryInfo(
                message=f"Adding peer: {record.key}",
                service=self._service,
                peer=record.key,
            )
        )

        try:
            await self._transport.on_peer_added(record)

        except Exception as err:
            await self._logger.log(
                DiscoveryError(
                    message=f"Transport failed to add peer: {err}",
                    service=self._service,
                    peer=record.key,
                )
            )
            return False

        return True

    async def removed(self, key: str) -> bool:
        if self._closed:
            return False

        await self._logger.log(
            DiscoveryInfo(
                message=f"Removing peer: {key}",
                service=self._service,
                peer=key,
            )
        )

        try:
            await self._transport.on_peer_removed(key)

        except Exception as err:
            await self._logger.log(
                DiscoveryError(
                    message=f"Transport failed to remove peer: {err}",
                    service=self._service,
                    peer=key,
                )
            )
            return False

        return True
