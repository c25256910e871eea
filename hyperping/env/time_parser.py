import re
from datetime import timedelta

from hyperping.errors import DiscoveryConfigError


class TimeParser:
    def __init__(self) -> None:
        self._units = {
            "ms": "milliseconds",
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

    def parse(self, time_amount: str | int | float) -> float:
        if isinstance(time_amount, (int, float)):
            return float(time_amount)

        matches = list(
            re.finditer(
                r"(?P<val>\d+(\.\d+)?)(?P<unit>ms|[smhdw]?)",
                time_amount.strip(),
                flags=re.I,
            )
        )

        if not matches or "".join(m.group(0) for m in matches) != time_amount.strip().replace(" ", ""):
            raise DiscoveryConfigError(
                f"Could not parse duration '{time_amount}' (expected e.g. '30s', '1m', '250ms')"
            )

        return float(
            timedelta(
                **{
                    self._units.get(
                        m.group("unit").lower(),
                        "seconds",
                    ): float(
                        m.group("val")
                    )
                    for m in matches
                }
            ).total_seconds()
        )
