"""Tests for waiting on stream completion."""

from __future__ import annotations

import asyncio
import unittest

from streamawait.emitter import EventEmitter
from streamawait.exceptions import StreamError
from streamawait.operations import TERMINAL_EVENTS, wait


class WaitTests(unittest.IsolatedAsyncioTestCase):
    """Validate wait() settlement on terminal and error events."""

    def _emit_soon(self, emitter: EventEmitter, event: str, *args: object) -> None:
        asyncio.get_running_loop().call_soon(emitter.emit, event, *args)

    async def test_terminal_events_without_arguments_resolve_empty(self) -> None:
        for event in TERMINAL_EVENTS:
            with self.subTest(event=event):
                stream = EventEmitter()
                self._emit_soon(stream, event)
                self.assertEqual(await wait(stream), [])

    async def test_close_with_single_argument(self) -> None:
        stream = EventEmitter()
        self._emit_soon(stream, "close", "foo")
        self.assertEqual(await wait(stream), ["foo"])

    async def test_close_with_multiple_arguments_preserves_order(self) -> None:
        stream = EventEmitter()
        self._emit_soon(stream, "close", "foo", "bar", "baz")
        self.assertEqual(await wait(stream), ["foo", "bar", "baz"])

    async def test_error_rejects_with_same_error(self) -> None:
        stream = EventEmitter()
        error = RuntimeError("stream error")
        self._emit_soon(stream, "error", error)

        with self.assertRaises(RuntimeError) as ctx:
            await wait(stream)
        self.assertIs(ctx.exception, error)
        self.assertEqual(str(ctx.exception), "stream error")

    async def test_non_exception_error_payload_is_wrapped(self) -> None:
        stream = EventEmitter()
        self._emit_soon(stream, "error", "stream error")

        with self.assertRaises(StreamError) as ctx:
            await wait(stream)
        self.assertEqual(ctx.exception.value, "stream error")

    async def test_first_terminal_event_wins(self) -> None:
        stream = EventEmitter()

        def _finish() -> None:
            stream.emit("end", "first")
            stream.emit("close", "second")
            stream.emit("error", RuntimeError("late"))

        asyncio.get_running_loop().call_soon(_finish)
        self.assertEqual(await wait(stream), ["first"])

    async def test_listeners_released_after_settlement(self) -> None:
        stream = EventEmitter()
        self._emit_soon(stream, "done")

        await wait(stream)

        for event in ("error", *TERMINAL_EVENTS):
            self.assertEqual(stream.listener_count(event), 0)

    async def test_error_after_settlement_raises_without_other_listeners(self) -> None:
        stream = EventEmitter()
        self._emit_soon(stream, "end")
        await wait(stream)

        error = RuntimeError("after end")
        with self.assertRaises(RuntimeError) as ctx:
            stream.emit("error", error)
        self.assertIs(ctx.exception, error)

    async def test_listeners_released_when_caller_cancels(self) -> None:
        stream = EventEmitter()
        future = wait(stream)
        self.assertEqual(stream.listener_count("close"), 1)

        future.cancel()
        await asyncio.sleep(0)

        self.assertEqual(stream.listener_count("close"), 0)
        self.assertEqual(stream.listener_count("error"), 0)

    async def test_listeners_registered_before_returning(self) -> None:
        stream = EventEmitter()
        future = wait(stream)
        stream.emit("end")
        self.assertEqual(await future, [])

    async def test_never_settles_without_events(self) -> None:
        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(wait(EventEmitter()), timeout=0.05)


if __name__ == "__main__":
    unittest.main()
