from __future__ import annotations
from enum import Enum
from typing import Literal

LogLevelName = Literal[
    'trace',
    'debug',
    'info',
    'warn',
    'warning',
    'error',
    'critical',
    'fatal'
]


class LogLevel(Enum):
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    FATAL = "FATAL"

    @classmethod
    def to_level(cls, level_name: LogLevelName | str) -> LogLevel:
        """Parse a case-insensitive level name. ``warning`` is read as WARN."""
        name = level_name.strip().upper()
        if name == "WARNING":
            name = "WARN"

        try:
            return cls(name)

        except ValueError:
            raise ValueError(f"Unknown log level: {level_name!r}") from None
