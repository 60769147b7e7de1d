"""Event dispatch and routing.

The dispatcher is a small synchronous publish/subscribe object. Among
the subscribers of one event type, lower priority values run earlier
and ties run in subscription order. The router registers a lifecycle
strategy's static table at ROUTER_PRIORITY so it observes each event
after the engine's own bookkeeping listeners (default priority 0).
"""

import itertools
import logging
from typing import Any

from .ports import Handler, LifecycleSink

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 0
ROUTER_PRIORITY = 50


class EventDispatcher:
    """Delivers events to subscribers ordered by priority."""

    def __init__(self) -> None:
        self._listeners: dict[type, list[tuple[int, int, Handler]]] = {}
        self._sequence = itertools.count()

    def subscribe(
        self, event_type: type, handler: Handler, priority: int = DEFAULT_PRIORITY
    ) -> None:
        listeners = self._listeners.setdefault(event_type, [])
        listeners.append((priority, next(self._sequence), handler))
        listeners.sort(key=lambda entry: (entry[0], entry[1]))

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        listeners = self._listeners.get(event_type, [])
        self._listeners[event_type] = [
            entry for entry in listeners if entry[2] != handler
        ]

    def listeners(self, event_type: type) -> list[Handler]:
        return [handler for _, _, handler in self._listeners.get(event_type, [])]

    def dispatch(self, event: Any) -> int:
        """Deliver event to every subscriber of its exact type.

        Handler exceptions propagate to the caller.

        Returns:
            Number of handlers invoked.
        """
        handlers = self.listeners(type(event))
        if not handlers:
            logger.debug(f"No subscribers for {type(event).__name__}")
        for handler in handlers:
            handler(event)
        return len(handlers)


class EventRouter:
    """Binds a lifecycle strategy's routing table onto a dispatcher."""

    def __init__(self, lifecycle: LifecycleSink, dispatcher: EventDispatcher | None = None):
        self.lifecycle = lifecycle
        self.dispatcher = dispatcher or EventDispatcher()
        self._bound = False

    def bind(self) -> "EventRouter":
        """Subscribe every entry of the strategy's table. Idempotent."""
        if self._bound:
            return self
        for event_type, (handler, priority) in self.lifecycle.subscribed_events().items():
            self.dispatcher.subscribe(event_type, handler, priority)
        self._bound = True
        logger.debug(
            f"Routed {len(self.lifecycle.subscribed_events())} event type(s) "
            f"to {type(self.lifecycle).__name__}"
        )
        return self

    def dispatch(self, event: Any) -> int:
        if not self._bound:
            self.bind()
        return self.dispatcher.dispatch(event)
