"""Promise-style adapters over event-emitting streams.

Every operation attaches its listeners synchronously and returns an
``asyncio.Future``; nothing here spins or polls. Listener registrations made
on behalf of a future are released once that future is done, whether it
resolved, failed or was cancelled by the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from functools import partial
import logging
from typing import Any

from .emitter import Pipeable, Subscribable, Subscription
from .exceptions import NotAStringError, StreamError
from .streams import StringStream

LOGGER = logging.getLogger(__name__)

TERMINAL_EVENTS: tuple[str, ...] = ("close", "end", "done")


class PendingOperation:
    """Single-settlement future tied to listener registrations on one emitter.

    ``resolve`` and ``reject`` are idempotent: only the first call settles the
    future, later calls are ignored.
    """

    def __init__(
        self,
        emitter: Subscribable,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._emitter = emitter
        self._subscriptions: list[Subscription] = []
        self.future: asyncio.Future[Any] = (
            loop or asyncio.get_running_loop()
        ).create_future()
        self.future.add_done_callback(self._release)

    @property
    def settled(self) -> bool:
        return self.future.done()

    def listen(
        self, event: str, handler: Callable[..., Any], *, once: bool = False
    ) -> None:
        """Subscribe ``handler`` for as long as the future is pending."""
        self._subscriptions.append(
            self._emitter.subscribe(event, handler, once=once)
        )

    def resolve(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def reject(self, error: Any = None, *_: Any) -> None:
        if self.future.done():
            return
        if not isinstance(error, BaseException):
            error = StreamError(error)
        self.future.set_exception(error)

    def _release(self, _future: asyncio.Future[Any]) -> None:
        for subscription in self._subscriptions:
            self._emitter.unsubscribe(subscription)
        self._subscriptions.clear()


def _collapse_arguments(args: tuple[Any, ...]) -> Any:
    if not args:
        return None
    if len(args) == 1:
        return args[0]
    return list(args)


def _concatenate(chunks: list[Any]) -> str | bytes:
    if not chunks:
        return ""
    if isinstance(chunks[0], (bytes, bytearray)):
        return b"".join(chunks)
    return "".join(chunks)


def wait(
    stream: Subscribable, *, loop: asyncio.AbstractEventLoop | None = None
) -> asyncio.Future[list[Any]]:
    """Wait for a stream to finish.

    Resolves with the arguments of the first ``close``, ``end`` or ``done``
    event as a list, or fails with the payload of the first ``error`` event.

    Example:
        output = FileWriteStream("foo/baz")
        FileReadStream("foo/bar").pipe(output)
        await wait(output)
    """
    operation = PendingOperation(stream, loop=loop)

    def _finished(event: str, *args: Any) -> None:
        if not operation.settled:
            LOGGER.debug(
                "stream.wait.settled",
                extra={"event": "stream.wait.settled", "terminal_event": event},
            )
        operation.resolve(list(args))

    operation.listen("error", operation.reject)
    for name in TERMINAL_EVENTS:
        operation.listen(name, partial(_finished, name))
    return operation.future


def extract(
    stream: Subscribable, *, loop: asyncio.AbstractEventLoop | None = None
) -> asyncio.Future[str | bytes]:
    """Collect the *remaining* data of a readable stream.

    Chunks emitted before this call are not replayed.
    """
    operation = PendingOperation(stream, loop=loop)
    chunks: list[Any] = []
    operation.listen("data", chunks.append)
    waiter = wait(stream, loop=loop)

    def _completed(done: asyncio.Future[list[Any]]) -> None:
        if done.cancelled():
            operation.future.cancel()
            return
        error = done.exception()
        if error is not None:
            operation.reject(error)
            return
        try:
            content = _concatenate(chunks)
        except TypeError as exc:
            # Object-mode or mixed str/bytes chunks cannot be joined.
            operation.reject(exc)
            return
        operation.resolve(content)

    def _abandoned(future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            waiter.cancel()

    waiter.add_done_callback(_completed)
    operation.future.add_done_callback(_abandoned)
    return operation.future


def bifurcate(
    stream: Pipeable,
    output1: Subscribable,
    output2: Subscribable,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.Future[list[list[Any]]]:
    """Pipe a readable stream into two writables.

    Resolves once both outputs have finished, with their terminal event
    arguments. Fails on the first output error; the other output keeps
    running and its outcome is only logged.
    """
    stream.pipe(output1)
    stream.pipe(output2)

    waiters = [wait(output1, loop=loop), wait(output2, loop=loop)]
    combined = asyncio.gather(*waiters)

    def _report_late_outcome(index: int, done: asyncio.Future[list[Any]]) -> None:
        if not combined.done() or combined.cancelled():
            return
        if combined.exception() is None or done.cancelled():
            return
        error = done.exception()
        if error is combined.exception():
            return
        LOGGER.warning(
            "stream.bifurcate.partial_failure",
            extra={
                "event": "stream.bifurcate.partial_failure",
                "output": index + 1,
                "outcome": "failed" if error is not None else "finished",
                "reason": str(error) if error is not None else "",
            },
        )

    for index, waiter in enumerate(waiters):
        waiter.add_done_callback(partial(_report_late_outcome, index))
    return combined


def pipe_with_events(
    stream: Pipeable, output: Any, events: Iterable[str] | str
) -> Any:
    """Pipe ``stream`` into ``output`` and relay the named events.

    Every firing of each named event is re-emitted on ``output`` with the same
    arguments, synchronously and in firing order. Returns the piped output.
    """
    names = [events] if isinstance(events, str) else list(events)
    for name in names:
        stream.subscribe(name, partial(output.emit, name))
    LOGGER.debug(
        "stream.relay.attached",
        extra={"event": "stream.relay.attached", "relayed_events": names},
    )
    return stream.pipe(output)


def on_event(
    stream: Subscribable,
    event: str,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.Future[Any]:
    """Resolve on the first firing of ``event``.

    The result is ``None`` for no arguments, the argument itself for exactly
    one, and the list of arguments otherwise.
    """
    operation = PendingOperation(stream, loop=loop)

    def _fired(*args: Any) -> None:
        operation.resolve(_collapse_arguments(args))

    operation.listen(event, _fired, once=True)
    return operation.future


def stream_from_string(
    value: str,
    *,
    chunk_size: int | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> StringStream:
    """Return a readable stream emitting ``value``.

    Raises:
        NotAStringError: If ``value`` is not a ``str``.
    """
    if not isinstance(value, str):
        raise NotAStringError(value)
    return StringStream(value, chunk_size=chunk_size, loop=loop)


get_stream_from_string = stream_from_string
