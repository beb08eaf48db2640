import logging
from typing import Type, Callable, List, Dict, Any
from shrinkvid.domain.events import Event

class EventBus:
    """Synchronous event bus; callbacks run on the publishing thread in subscription order."""

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Callable[[Any], None]]] = {}
        self.logger = logging.getLogger(__name__)

    def subscribe(self, event_type: Type[Event], callback: Callable[[Any], None]):
        """Subscribes a callback to a specific event type (exact type match)."""
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: Type[Event], callback: Callable[[Any], None]):
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, event: Event):
        """Publishes an event to all interested subscribers."""
        callbacks = self._subscribers.get(type(event), [])
        self.logger.debug(f"EVENT: {type(event).__name__} -> {len(callbacks)} subscriber(s)")
        for callback in list(callbacks):
            callback(event)
