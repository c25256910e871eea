from __future__ import annotations

import sys
from typing import (
    Callable,
    Dict,
    TypeVar,
)

from hyperping.logging.config.stream_type import StreamType
from hyperping.logging.models import Entry, Log

from .logger_context import LoggerContext

T = TypeVar('T', bound=Entry)


class Logger:
    def __init__(self) -> None:
        self._contexts: Dict[str, LoggerContext] = {}

    def __getitem__(self, name: str):

        if self._contexts.get(name) is None:
            self._contexts[name] = LoggerContext(name=name)

        return self._contexts[name]

    def configure(
        self,
        name: str | None = None,
        template: str | None = None,
        output: StreamType | None = None,
    ):
        if name is None:
            name = 'default'

        self._contexts[name] = LoggerContext(
            name=name,
            template=template,
            output=output,
        )

    def context(
        self,
        name: str | None = None,
        template: str | None = None,
        output: StreamType | None = None,
        nested: bool = False,
    ):
        if name is None:
            name = 'default'

        if self._contexts.get(name) is None:

            self._contexts[name] = LoggerContext(
                name=name,
                template=template,
                output=output,
                nested=nested,
            )

        else:
            self._contexts[name].template = template if template else self._contexts[name].template
            self._contexts[name].output = output if output else self._contexts[name].output
            self._contexts[name].nested = nested

        return self._contexts[name]

    async def log(
        self,
        entry: T,
        name: str | None = None,
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)

        async with self.context(
            name=name,
            nested=True,
        ) as ctx:
            await ctx.log(
                Log.wrap(entry, frame=frame),
                template=template,
                filter=filter,
            )

    async def close(self):
        for context in self._contexts.values():
            await context.stream.close()

        self._contexts.clear()
