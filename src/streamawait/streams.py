"""Minimal event-emitting stream runtime.

Streams follow the conventional event contract: readables emit ``data``
chunks, then ``end`` and ``close``; writables emit ``finish`` and ``close``
once ended; any stream may emit ``error``. Delivery is scheduled on the event
loop so that listeners registered right after construction observe
everything. There are no high-water marks: writes are accepted immediately.
"""

from __future__ import annotations

import asyncio
import codecs
from collections import deque
from collections.abc import Callable
import logging
import os
from pathlib import Path
from typing import Any

from .emitter import EventEmitter, Subscription
from .exceptions import StreamStateError

LOGGER = logging.getLogger(__name__)

Chunk = str | bytes

DEFAULT_FILE_CHUNK_SIZE = 64 * 1024


class Stream(EventEmitter):
    """Base class binding an emitter to an event loop."""

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        super().__init__()
        self._loop = loop
        self.destroyed = False
        self.closed = False
        self._close_scheduled = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """Return the bound loop, binding to the running loop on first use."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def destroy(self, error: BaseException | None = None) -> None:
        """Stop the stream, emitting ``error`` (when given) and ``close``."""
        if self.destroyed:
            return
        self.destroyed = True
        if error is not None:
            LOGGER.debug(
                "stream.destroyed",
                extra={"event": "stream.destroyed", "reason": str(error)},
            )
            self.loop.call_soon(self.emit, "error", error)
        self._schedule_close()

    def _can_close(self) -> bool:
        return False

    def _maybe_close(self) -> None:
        if self._can_close():
            self._schedule_close()

    def _schedule_close(self) -> None:
        if self._close_scheduled:
            return
        self._close_scheduled = True
        self.loop.call_soon(self._close)

    def _close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.emit("close")


class Readable(Stream):
    """Push-based readable stream.

    Subclasses override ``_read`` to ``push`` chunks on demand; ``push(None)``
    signals end of data. Flowing starts when a ``data`` listener is attached
    or ``resume`` is called.
    """

    def __init__(
        self,
        *,
        encoding: str | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(loop=loop)
        self._init_readable(encoding)

    def _init_readable(self, encoding: str | None) -> None:
        self.encoding = encoding
        self._decoder = (
            codecs.getincrementaldecoder(encoding)() if encoding is not None else None
        )
        self._buffer: deque[Chunk] = deque()
        self._eof = False
        self.end_emitted = False
        self.flowing = False
        self._flow_scheduled = False
        self._read_requested = False

    def _read(self) -> None:
        """Produce data by calling ``push``; the default waits for pushes."""

    def push(self, chunk: Chunk | None) -> bool:
        """Queue ``chunk`` for delivery, or signal end of data with ``None``."""
        if self._eof:
            raise StreamStateError("stream.push() after EOF")
        self._read_requested = False
        try:
            if chunk is None:
                self._eof = True
                if self._decoder is not None:
                    tail = self._decoder.decode(b"", final=True)
                    if tail:
                        self._buffer.append(tail)
            else:
                if self._decoder is not None and isinstance(
                    chunk, (bytes, bytearray)
                ):
                    chunk = self._decoder.decode(chunk)
                    if not chunk:
                        return True
                self._buffer.append(chunk)
        except UnicodeDecodeError as exc:
            self.destroy(exc)
            return False
        self._schedule_flow()
        return True

    def subscribe(
        self, event: str, handler: Callable[..., Any], *, once: bool = False
    ) -> Subscription:
        subscription = super().subscribe(event, handler, once=once)
        if event == "data":
            self.resume()
        return subscription

    def resume(self) -> Readable:
        """Switch to flowing mode."""
        self.flowing = True
        self._schedule_flow()
        return self

    def pause(self) -> Readable:
        """Stop emitting ``data`` until ``resume`` is called."""
        self.flowing = False
        return self

    def pipe(self, destination: Any, *, end: bool = True) -> Any:
        """Write every chunk to ``destination`` and return it.

        When ``end`` is true the destination is ended once this stream ends.
        """
        self.on("data", destination.write)
        if end:
            self.once("end", destination.end)
        destination.emit("pipe", self)
        return destination

    def _schedule_flow(self) -> None:
        if not self.flowing or self._flow_scheduled or self.destroyed:
            return
        self._flow_scheduled = True
        self.loop.call_soon(self._flow)

    def _flow(self) -> None:
        self._flow_scheduled = False
        if self.destroyed:
            return
        if not self._eof and not self._buffer and not self._read_requested:
            self._read_requested = True
            self._read()
        while self.flowing and self._buffer and not self.destroyed:
            self.emit("data", self._buffer.popleft())
        if self.flowing and self._eof and not self._buffer and not self.end_emitted:
            self.end_emitted = True
            self.emit("end")
            self._maybe_close()

    def _can_close(self) -> bool:
        return self.end_emitted


class Writable(Stream):
    """Writable stream; subclasses override ``_write`` and ``_final``."""

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        super().__init__(loop=loop)
        self._init_writable()

    def _init_writable(self) -> None:
        self.ending = False
        self.finished = False

    def _write(self, chunk: Chunk) -> None:
        """Consume one chunk."""

    def _final(self) -> None:
        """Flush and release resources once all chunks are written."""

    def write(self, chunk: Chunk) -> bool:
        """Consume ``chunk``; returns False when the stream was destroyed."""
        if self.ending:
            raise StreamStateError("stream.write() after end")
        if self.destroyed:
            return False
        try:
            self._write(chunk)
        except OSError as exc:
            self.destroy(exc)
            return False
        return True

    def end(self, chunk: Chunk | None = None) -> None:
        """Optionally write a final chunk, then finish the stream."""
        if chunk is not None:
            self.write(chunk)
        if self.ending:
            return
        self.ending = True
        self.loop.call_soon(self._finish)

    def _finish(self) -> None:
        if self.destroyed:
            return
        try:
            self._final()
        except OSError as exc:
            self.destroy(exc)
            return
        self.finished = True
        self.emit("finish")
        self._maybe_close()

    def _can_close(self) -> bool:
        return self.finished


class Duplex(Readable, Writable):
    """Stream that is both readable and writable.

    ``close`` is emitted only after the readable side ended and the writable
    side finished.
    """

    def __init__(
        self,
        *,
        encoding: str | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        Stream.__init__(self, loop=loop)
        self._init_readable(encoding)
        self._init_writable()

    def _can_close(self) -> bool:
        return self.end_emitted and self.finished


class PassThrough(Duplex):
    """Duplex stream that re-emits whatever is written to it."""

    def _write(self, chunk: Chunk) -> None:
        self.push(chunk)

    def _final(self) -> None:
        self.push(None)


class StringStream(Readable):
    """Readable stream over an in-memory string."""

    def __init__(
        self,
        value: str,
        *,
        chunk_size: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(loop=loop)
        self._value = value
        self._chunk_size = chunk_size if chunk_size and chunk_size > 0 else None
        self._offset = 0

    def _read(self) -> None:
        if self._offset >= len(self._value):
            self.push(None)
            return
        if self._chunk_size is None:
            chunk = self._value[self._offset :]
        else:
            chunk = self._value[self._offset : self._offset + self._chunk_size]
        self._offset += len(chunk)
        self.push(chunk)


class FileReadStream(Readable):
    """Readable stream over a file on disk, read in fixed-size chunks."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        encoding: str | None = None,
        chunk_size: int = DEFAULT_FILE_CHUNK_SIZE,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(encoding=encoding, loop=loop)
        self.path = Path(path)
        self._chunk_size = max(1, chunk_size)
        self._handle: Any = None

    def _read(self) -> None:
        try:
            if self._handle is None:
                self._handle = self.path.open("rb")
            chunk = self._handle.read(self._chunk_size)
        except OSError as exc:
            self.destroy(exc)
            return
        if chunk:
            self.push(chunk)
        else:
            self._release()
            self.push(None)

    def destroy(self, error: BaseException | None = None) -> None:
        self._release()
        super().destroy(error)

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class FileWriteStream(Writable):
    """Writable stream that writes chunks into a file, truncating it first."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        encoding: str = "utf-8",
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(loop=loop)
        self.path = Path(path)
        self.encoding = encoding
        self._handle: Any = None

    def _write(self, chunk: Chunk) -> None:
        if self._handle is None:
            self._handle = self.path.open("wb")
        if isinstance(chunk, str):
            chunk = chunk.encode(self.encoding)
        self._handle.write(chunk)

    def _final(self) -> None:
        if self._handle is None:
            # Nothing was written; still create the (empty) file.
            self._handle = self.path.open("wb")
        self._handle.close()
        self._handle = None
