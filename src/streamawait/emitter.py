"""Synchronous event emitter with explicit subscription handles.

Usage:
    emitter = EventEmitter()

    def on_data(chunk):
        print(chunk)

    subscription = emitter.on("data", on_data)
    emitter.emit("data", "Hello")
    emitter.unsubscribe(subscription)

Handlers run synchronously, in registration order, inside ``emit``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any, Protocol, runtime_checkable

from .exceptions import StreamError

LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``subscribe``; compares by identity."""

    event: str
    handler: Callable[..., Any]
    once: bool = False


@runtime_checkable
class Subscribable(Protocol):
    """Anything operations can attach listeners to."""

    def subscribe(
        self, event: str, handler: Callable[..., Any], *, once: bool = False
    ) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...


@runtime_checkable
class Emitter(Subscribable, Protocol):
    """A subscribable object that can also emit events."""

    def emit(self, event: str, *args: Any) -> bool: ...


@runtime_checkable
class Pipeable(Emitter, Protocol):
    """A source stream that can forward its data to a destination."""

    def pipe(self, destination: Any) -> Any: ...


class EventEmitter:
    """Named-event dispatcher.

    Emitting ``error`` with no listener raises the payload (or a
    ``StreamError`` wrapping it) so that failures are never silently lost.
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Subscription]] = defaultdict(list)

    def subscribe(
        self, event: str, handler: Callable[..., Any], *, once: bool = False
    ) -> Subscription:
        """Register ``handler`` for ``event`` and return its handle.

        Args:
            event: Event name to listen for (e.g. ``"data"``)
            handler: Callable invoked with the emitted arguments
            once: Remove the subscription before its first invocation
        """
        subscription = Subscription(event=event, handler=handler, once=once)
        self._listeners[event].append(subscription)
        return subscription

    def on(self, event: str, handler: Callable[..., Any]) -> Subscription:
        """Register a persistent listener."""
        return self.subscribe(event, handler)

    def once(self, event: str, handler: Callable[..., Any]) -> Subscription:
        """Register a listener that fires at most once."""
        return self.subscribe(event, handler, once=True)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription; unknown handles are ignored."""
        listeners = self._listeners.get(subscription.event)
        if not listeners:
            return
        try:
            listeners.remove(subscription)
        except ValueError:
            return
        if not listeners:
            del self._listeners[subscription.event]

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Drop every listener, or only those of ``event``."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        """Return how many listeners are registered for ``event``."""
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        """Invoke every listener of ``event`` with ``args``.

        Returns True when at least one listener was registered. The listener
        list is snapshotted first, so handlers added or removed during
        dispatch only affect later emissions.
        """
        subscriptions = list(self._listeners.get(event, ()))
        if not subscriptions:
            if event == "error":
                error = args[0] if args else None
                LOGGER.debug(
                    "emitter.error.unhandled",
                    extra={"event": "emitter.error.unhandled"},
                )
                if isinstance(error, BaseException):
                    raise error
                raise StreamError(error)
            return False
        for subscription in subscriptions:
            if subscription.once:
                self.unsubscribe(subscription)
            subscription.handler(*args)
        return True
