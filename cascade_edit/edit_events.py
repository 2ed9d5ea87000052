"""
Change notification for cascade_edit.

Every successfully written edit is announced as an ``edit:applied`` event
carrying the file path and its content before and after the write. Delivery
is synchronous and in subscription order. A failing handler never affects
the edit that triggered it: the error is logged and the event is kept on
the dead letter list.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

logger = logging.getLogger("cascade_edit.edit_events")

EDIT_APPLIED = "edit:applied"


@dataclass
class Event:
    """A single notification published on the bus."""
    event_type: str
    source: str
    payload: dict = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.payload is None:
            self.payload = {}

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "source": self.source,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


def create_edit_applied_event(path: str, before: str, after: str) -> Event:
    """Build the event emitted after *path* was rewritten."""
    return Event(
        event_type=EDIT_APPLIED,
        source="code_editor",
        payload={
            "path": path,
            "before_content": before,
            "after_content": after,
        },
    )


# Type alias for event handlers
EventHandler = Callable[[Event], Any]


@dataclass
class Subscription:
    """Represents a subscription to events."""
    handler: EventHandler
    event_types: set[str] = field(default_factory=set)  # Empty = all types
    subscription_id: str = field(default_factory=lambda: str(uuid4()))


class EventBus:
    """
    Synchronous in-process event bus.

    Handlers subscribed to specific event types run first, then global
    handlers, each group in subscription order.
    """

    def __init__(self, max_dead_letters: int = 100):
        self._subscriptions: dict[str, Subscription] = {}
        self._handlers_by_type: dict[str, list[Subscription]] = defaultdict(list)
        self._global_handlers: list[Subscription] = []

        self.dead_letters: list[tuple[Event, Exception]] = []
        self._max_dead_letters = max_dead_letters

    def subscribe(
        self,
        handler: EventHandler,
        event_types: Optional[set[str]] = None,
    ) -> str:
        """
        Subscribe a handler to events.

        Args:
            handler: Callable taking a single Event
            event_types: Set of event types to handle (None = all)

        Returns:
            Subscription ID for unsubscribing
        """
        subscription = Subscription(handler=handler, event_types=set(event_types or ()))
        self._subscriptions[subscription.subscription_id] = subscription

        if not subscription.event_types:
            self._global_handlers.append(subscription)
        else:
            for event_type in subscription.event_types:
                self._handlers_by_type[event_type].append(subscription)

        logger.debug("Subscribed handler %s for types: %s",
                     subscription.subscription_id, event_types or "all")
        return subscription.subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if unsubscribed, False if not found
        """
        subscription = self._subscriptions.pop(subscription_id, None)
        if not subscription:
            return False

        self._global_handlers = [
            s for s in self._global_handlers if s.subscription_id != subscription_id
        ]
        for event_type in list(self._handlers_by_type.keys()):
            self._handlers_by_type[event_type] = [
                s for s in self._handlers_by_type[event_type]
                if s.subscription_id != subscription_id
            ]

        logger.debug("Unsubscribed handler %s", subscription_id)
        return True

    def emit(self, event: Event) -> int:
        """
        Deliver *event* to every matching handler.

        Returns:
            Number of handlers that completed without raising
        """
        handlers = list(self._handlers_by_type.get(event.event_type, []))
        handlers.extend(self._global_handlers)

        handled = 0
        for subscription in handlers:
            try:
                subscription.handler(event)
                handled += 1
            except Exception as e:
                logger.error("Handler %s failed for %s: %s",
                             subscription.subscription_id, event.event_type, e)
                self._add_to_dead_letters(event, e)

        return handled

    def _add_to_dead_letters(self, event: Event, error: Exception):
        self.dead_letters.append((event, error))
        if len(self.dead_letters) > self._max_dead_letters:
            self.dead_letters = self.dead_letters[-self._max_dead_letters:]

    def clear_dead_letters(self) -> int:
        """Clear the dead letter list. Returns the number of entries removed."""
        count = len(self.dead_letters)
        self.dead_letters = []
        return count
