"""
Event Dispatcher - Synchronous host event delivery.

This module implements:
1. Listener registration per event name with priorities
2. Subscriber registration from a get_subscribed_events() mapping
3. Ordered, run-to-completion dispatch on the calling thread

Listeners run in priority order (higher priority = earlier execution), ties
broken by registration order. A listener raising an exception aborts the
dispatch and propagates to the host.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class EventDispatcherError(Exception):
    """Base exception for event dispatcher errors."""

    pass


class RegistrationError(EventDispatcherError):
    """Raised when listener registration fails."""

    pass


@dataclass
class Listener:
    """
    Represents a registered event listener.

    Attributes:
        callback: The listener function, called with the event
        priority: Higher priority executes first
        registration_order: Tie-breaker for same priority (lower = earlier)
    """

    callback: Callable[[Any], Any]
    priority: int
    registration_order: int

    def __call__(self, event: Any) -> Any:
        """Execute the listener."""
        return self.callback(event)


class EventDispatcher:
    """
    Host event dispatcher.

    Routes package and script events to listeners registered by plugins.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}
        self._registration_counter = 0

    def _next_registration_order(self) -> int:
        """Get next registration order number."""
        order = self._registration_counter
        self._registration_counter += 1
        return order

    def add_listener(
        self, event_name: str, callback: Callable[[Any], Any], priority: int = 0
    ) -> None:
        """
        Register a listener for an event name.

        Args:
            event_name: Exact event name to match
            callback: Function taking the event object
            priority: Execution priority (higher = earlier)

        Raises:
            RegistrationError: If callback is not callable
        """
        if not callable(callback):
            raise RegistrationError(
                f"Listener for '{event_name}' is not callable: {callback!r}"
            )

        listener = Listener(
            callback=callback,
            priority=priority,
            registration_order=self._next_registration_order(),
        )
        self._listeners.setdefault(event_name, []).append(listener)

    def add_subscriber(self, subscriber: Any) -> None:
        """
        Register every listener a subscriber declares.

        The subscriber's get_subscribed_events() maps event names to either a
        method name or a (method name, priority) tuple.

        Raises:
            RegistrationError: If a declared method does not exist
        """
        for event_name, spec in subscriber.get_subscribed_events().items():
            if isinstance(spec, str):
                method_name, priority = spec, 0
            else:
                method_name, priority = spec

            callback = getattr(subscriber, method_name, None)
            if callback is None:
                raise RegistrationError(
                    f"{type(subscriber).__name__} subscribes to '{event_name}' "
                    f"with unknown method '{method_name}'"
                )
            self.add_listener(event_name, callback, priority)

    def get_listeners(self, event_name: str) -> list[Listener]:
        """Get listeners for an event, sorted by priority and registration order."""
        listeners = self._listeners.get(event_name, [])
        return sorted(listeners, key=lambda lst: (-lst.priority, lst.registration_order))

    def has_listeners(self, event_name: str) -> bool:
        """Check whether any listener is registered for an event."""
        return bool(self._listeners.get(event_name))

    def dispatch(self, event_name: str, event: Any) -> list[Any]:
        """
        Dispatch an event to its listeners.

        Args:
            event_name: The event name
            event: The event object handed to each listener

        Returns:
            Listener return values, in execution order
        """
        listeners = self.get_listeners(event_name)
        logger.debug("Dispatching %s to %d listener(s)", event_name, len(listeners))
        return [listener(event) for listener in listeners]
