"""
Event bus for block lifecycle notifications.
"""

import logging
from typing import Callable, Dict, List

from .models import BlockEvent


BLOCK_CREATED = "created"
BLOCK_UPDATED = "updated"
BLOCK_DELETED = "deleted"
BLOCK_EXTRACTED = "extracted"
BLOCK_REORDERED = "reordered"
BLOCK_SUMMARIZED = "summarized"
BLOCKS_PROCESSED = "processed"

# Handlers subscribed to this type receive every event
ALL_EVENTS = "*"

EventHandler = Callable[[BlockEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe channel keyed by event type.

    Each event type keeps a list of handlers, so independent observers can
    subscribe to the same type. A failing handler is logged and skipped; it
    never breaks the operation that emitted the event or the other handlers.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for an event type.

        Args:
            event_type: Event type to listen to, or ALL_EVENTS
            handler: Called with each matching BlockEvent

        Returns:
            A function that removes this subscription
        """
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event: BlockEvent) -> None:
        """Dispatch an event to its type's handlers, then to wildcard handlers."""
        handlers = list(self._handlers.get(event.type, []))
        if event.type != ALL_EVENTS:
            handlers.extend(self._handlers.get(ALL_EVENTS, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logging.error(f"Error in block event handler for '{event.type}' (block {event.block_id}): {e}")

    def handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, []))
