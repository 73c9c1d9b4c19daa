"""Newline-delimited JSON event parsing for ``flutter run --machine`` output.

The process writes one JSON document per line, but pipe reads hand us chunks
with no line alignment. ``StreamEventParser`` reassembles lines across chunks
and delivers every line that parses as JSON to a listener. Anything else
(build banners, raw ``print`` output) is expected noise and is dropped.

Memory is bounded: once the unterminated remainder reaches the buffer limit
it is discarded in full, so a frame that straddles that point is lost.
"""

from __future__ import annotations

import asyncio
import codecs
import json
from collections import deque
from typing import Any, AsyncIterator, Callable, Optional, Union

from .config import config
from .logger import log

EventListener = Callable[[Any], None]


class StreamEventParser:
    """Turns an unbounded chunked text stream into parsed JSON events."""

    def __init__(self, listener: EventListener, max_buffer_size: Optional[int] = None) -> None:
        self._listener = listener
        self._max_buffer_size = max_buffer_size or config.stream_buffer_limit
        self._buffer = ""
        # Chunks may split a multi-byte UTF-8 sequence
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def buffered(self) -> int:
        """Number of characters waiting for a newline."""
        return len(self._buffer)

    def feed(self, chunk: Union[str, bytes]) -> None:
        """Append a chunk and emit an event for every complete JSON line."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return

        self._buffer += chunk

        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index].strip()
            self._buffer = self._buffer[newline_index + 1:]
            if line:
                self._handle_line(line)

        if len(self._buffer) >= self._max_buffer_size:
            log.warning(
                f"Stream buffer reached {len(self._buffer)} chars without a newline, "
                "discarding it to bound memory"
            )
            self._buffer = ""

    def _handle_line(self, line: str) -> None:
        try:
            event = json.loads(line)
        except ValueError:
            # Not JSON, raw process output
            return

        try:
            self._listener(event)
        except Exception as e:
            log.error(f"Stream event listener failed: {e}")


async def iter_stream_events(
    reader: asyncio.StreamReader,
    *,
    chunk_size: Optional[int] = None,
    max_buffer_size: Optional[int] = None,
) -> AsyncIterator[Any]:
    """Yield parsed events from *reader* in stream order until EOF."""
    pending: deque[Any] = deque()
    parser = StreamEventParser(pending.append, max_buffer_size)
    size = chunk_size or config.stream_chunk_size

    while True:
        chunk = await reader.read(size)
        if not chunk:
            break
        parser.feed(chunk)
        while pending:
            yield pending.popleft()
