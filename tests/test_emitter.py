"""Tests for the EventEmitter subscription interface."""

from __future__ import annotations

import unittest
from unittest.mock import Mock

from streamawait.emitter import EventEmitter, Subscribable, Subscription
from streamawait.exceptions import StreamError


class EventEmitterTests(unittest.TestCase):
    """Validate subscribe/unsubscribe/emit semantics."""

    def test_emit_calls_handlers_in_registration_order(self) -> None:
        emitter = EventEmitter()
        calls: list[str] = []
        emitter.on("foo", lambda *args: calls.append(f"first{args}"))
        emitter.on("foo", lambda *args: calls.append(f"second{args}"))

        self.assertTrue(emitter.emit("foo", 1, 2))
        self.assertEqual(calls, ["first(1, 2)", "second(1, 2)"])

    def test_emit_without_listeners_returns_false(self) -> None:
        self.assertFalse(EventEmitter().emit("foo", "bar"))

    def test_once_handler_fires_a_single_time(self) -> None:
        emitter = EventEmitter()
        handler = Mock()
        emitter.once("foo", handler)

        emitter.emit("foo", "a")
        emitter.emit("foo", "b")

        handler.assert_called_once_with("a")
        self.assertEqual(emitter.listener_count("foo"), 0)

    def test_unsubscribe_removes_only_that_subscription(self) -> None:
        emitter = EventEmitter()
        kept = Mock()
        dropped = Mock()
        emitter.on("foo", kept)
        subscription = emitter.on("foo", dropped)

        emitter.unsubscribe(subscription)
        emitter.emit("foo")

        kept.assert_called_once_with()
        dropped.assert_not_called()

    def test_subscriptions_compare_by_identity(self) -> None:
        emitter = EventEmitter()
        handler = Mock()
        first = emitter.on("foo", handler)
        emitter.on("foo", handler)

        emitter.unsubscribe(first)

        self.assertEqual(emitter.listener_count("foo"), 1)

    def test_unsubscribe_unknown_handle_is_noop(self) -> None:
        emitter = EventEmitter()
        emitter.unsubscribe(Subscription(event="foo", handler=print))
        subscription = emitter.on("foo", print)
        emitter.unsubscribe(subscription)
        emitter.unsubscribe(subscription)
        self.assertEqual(emitter.listener_count("foo"), 0)

    def test_listener_removed_during_emit_still_sees_current_emission(self) -> None:
        emitter = EventEmitter()
        second = Mock()
        subscriptions: list[Subscription] = []
        emitter.on("foo", lambda: emitter.unsubscribe(subscriptions[0]))
        subscriptions.append(emitter.on("foo", second))

        emitter.emit("foo")
        emitter.emit("foo")

        second.assert_called_once_with()

    def test_unhandled_error_event_raises_payload(self) -> None:
        with self.assertRaisesRegex(ValueError, "boom"):
            EventEmitter().emit("error", ValueError("boom"))

    def test_unhandled_non_exception_error_is_wrapped(self) -> None:
        with self.assertRaises(StreamError) as ctx:
            EventEmitter().emit("error", "boom")
        self.assertEqual(ctx.exception.value, "boom")

    def test_handled_error_event_does_not_raise(self) -> None:
        emitter = EventEmitter()
        handler = Mock()
        emitter.on("error", handler)
        error = ValueError("boom")

        self.assertTrue(emitter.emit("error", error))
        handler.assert_called_once_with(error)

    def test_remove_all_listeners(self) -> None:
        emitter = EventEmitter()
        emitter.on("foo", print)
        emitter.on("bar", print)

        emitter.remove_all_listeners("foo")
        self.assertEqual(emitter.listener_count("foo"), 0)
        self.assertEqual(emitter.listener_count("bar"), 1)

        emitter.remove_all_listeners()
        self.assertEqual(emitter.listener_count("bar"), 0)

    def test_emitter_satisfies_subscribable_protocol(self) -> None:
        self.assertIsInstance(EventEmitter(), Subscribable)


if __name__ == "__main__":
    unittest.main()
