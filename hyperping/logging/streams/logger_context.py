from hyperping.logging.config.stream_type import StreamType

from .logger_stream import LoggerStream


class LoggerContext:
    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        output: StreamType | None = None,
        nested: bool = False,
    ) -> None:
        self.name = name
        self.template = template
        self.output = output
        self.stream = LoggerStream(
            name=name,
            template=template,
            output=output,
        )
        self.nested = nested

    async def __aenter__(self):
        return self.stream

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.nested is False:
            await self.stream.close()
