from __future__ import annotations

import datetime
import threading
from types import FrameType
from typing import Generic, TypeVar

import msgspec

from .entry import Entry


T = TypeVar('T', bound=Entry)


def utc_timestamp() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat()


class Log(msgspec.Struct, Generic[T], kw_only=True):
    """An entry plus the call site and thread that emitted it."""

    entry: T
    filename: str = ""
    function_name: str = ""
    line_number: int = 0
    thread_id: int = msgspec.field(
        default_factory=threading.get_native_id,
    )
    timestamp: str = msgspec.field(
        default_factory=utc_timestamp,
    )

    @classmethod
    def wrap(
        cls,
        entry: T | Log[T],
        frame: FrameType | None = None,
    ) -> Log[T]:
        if isinstance(entry, Log):
            return entry

        if frame is None:
            return cls(entry=entry)

        return cls(
            entry=entry,
            filename=frame.f_code.co_filename,
            function_name=frame.f_code.co_name,
            line_number=frame.f_lineno,
        )
