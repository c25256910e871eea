from typing import Any, Dict

import msgspec

from .log_level import LogLevel


class Entry(msgspec.Struct, kw_only=True):
    """
    Base log entry.

    ``service`` and ``peer`` place the entry within a discovery run. Both
    are optional so entries outside discovery (retries, plain messages)
    can share the base.
    """

    level: LogLevel
    message: str | None = None
    service: str | None = None
    peer: str | None = None
    tags: set[str] = msgspec.field(
        default_factory=set,
    )

    def to_template(
        self,
        template: str,
        context: Dict[str, Any] | None = None,
    ) -> str:
        values: Dict[str, Any] = {
            name: getattr(self, name) for name in self.__struct_fields__
        }

        values["level"] = self.level.value

        # Unset locators render as a placeholder rather than "None"
        values["service"] = self.service or "-"
        values["peer"] = self.peer or "-"

        if context:
            values.update(context)

        return template.format(**values)
