import asyncio
import sys
from typing import (
    Callable,
    Dict,
    TextIO,
    TypeVar,
)

import msgspec

from hyperping.logging.config.logging_config import LoggingConfig
from hyperping.logging.config.stream_type import StreamType
from hyperping.logging.models import Entry, Log

T = TypeVar('T', bound=Entry)


class LoggerStream:
    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        output: StreamType | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._default_template = template
        self._default_output = output
        self._config = LoggingConfig()
        self._encoder = msgspec.json.Encoder()
        self._write_lock: asyncio.Lock | None = None
        self._closed = False

    @property
    def name(self):
        return self._name

    @property
    def closed(self):
        return self._closed

    def _get_writer(self, output: StreamType | None) -> TextIO:
        if output is None:
            output = self._default_output or self._config.output

        # Looked up per write so redirected streams are honored.
        if output == StreamType.STDOUT:
            return sys.stdout

        return sys.stderr

    def _render(self, log: Log[T], template: str | None) -> str:
        if template is None:
            template = self._default_template

        if template:
            return log.entry.to_template(
                template,
                context={
                    "timestamp": log.timestamp,
                    "filename": log.filename,
                    "function_name": log.function_name,
                    "line_number": log.line_number,
                    "thread_id": log.thread_id,
                    "logger": self._name,
                },
            )

        return self._encoder.encode(log).decode()

    async def log(
        self,
        entry: T | Log[T],
        template: str | None = None,
        output: StreamType | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if self._closed:
            return

        log = Log.wrap(entry)

        if not self._config.enabled(self._name, log.entry.level):
            return

        if filter and not filter(log.entry):
            return

        if self._write_lock is None:
            self._write_lock = asyncio.Lock()

        line = self._render(log, template)
        writer = self._get_writer(output)

        async with self._write_lock:
            writer.write(f"{line}\n")
            writer.flush()

    async def close(self):
        self._closed = True
