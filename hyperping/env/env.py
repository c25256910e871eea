from __future__ import annotations

from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictBool, StrictInt, StrictStr

PrimaryType = Union[str, int, float, bytes, bool]


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    DISCOVERY_SERVICE_NAME: StrictStr | None = None
    DISCOVERY_NAMESPACE: StrictStr | None = None
    DISCOVERY_LABELS: StrictStr | None = None
    DISCOVERY_SERVICE_PORT: StrictInt = 0
    DISCOVERY_DEFAULT_PORT: StrictInt = 61616
    DISCOVERY_TRANSPORT_TYPE: StrictStr = "tcp"
    DISCOVERY_QUERY_INTERVAL: StrictStr = "30s"
    DISCOVERY_CONNECT_TIMEOUT: StrictStr = "5s"
    DISCOVERY_READ_TIMEOUT: StrictStr = "30s"
    DISCOVERY_OPERATION_ATTEMPTS: StrictInt = 3
    DISCOVERY_OPERATION_SLEEP: StrictStr = "1s"

    # Peer backoff
    DISCOVERY_MIN_CONNECT_TIME: StrictStr = "1s"
    DISCOVERY_INITIAL_RECONNECT_DELAY: StrictStr | None = None
    DISCOVERY_MAX_RECONNECT_DELAY: StrictStr = "16s"
    DISCOVERY_MAX_RECONNECT_ATTEMPTS: StrictInt = 4

    # Membership filtering
    DISCOVERY_SPLIT_CLUSTERS_DURING_ROLLING_UPDATE: StrictBool = False
    DISCOVERY_REQUIRE_READY: StrictBool = False
    DISCOVERY_SKIP_LOCAL_PEER: StrictBool = True
    DISCOVERY_LOCAL_ADDRESS: StrictStr | None = None

    DISCOVERY_LOG_LEVEL: Literal[
        "trace", "debug", "info", "warn", "error", "critical", "fatal"
    ] = "info"

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "DISCOVERY_SERVICE_NAME": str,
            "DISCOVERY_NAMESPACE": str,
            "DISCOVERY_LABELS": str,
            "DISCOVERY_SERVICE_PORT": int,
            "DISCOVERY_DEFAULT_PORT": int,
            "DISCOVERY_TRANSPORT_TYPE": str,
            "DISCOVERY_QUERY_INTERVAL": str,
            "DISCOVERY_CONNECT_TIMEOUT": str,
            "DISCOVERY_READ_TIMEOUT": str,
            "DISCOVERY_OPERATION_ATTEMPTS": int,
            "DISCOVERY_OPERATION_SLEEP": str,
            "DISCOVERY_MIN_CONNECT_TIME": str,
            "DISCOVERY_INITIAL_RECONNECT_DELAY": str,
            "DISCOVERY_MAX_RECONNECT_DELAY": str,
            "DISCOVERY_MAX_RECONNECT_ATTEMPTS": int,
            "DISCOVERY_SPLIT_CLUSTERS_DURING_ROLLING_UPDATE": _to_bool,
            "DISCOVERY_REQUIRE_READY": _to_bool,
            "DISCOVERY_SKIP_LOCAL_PEER": _to_bool,
            "DISCOVERY_LOCAL_ADDRESS": str,
            "DISCOVERY_LOG_LEVEL": str,
        }
