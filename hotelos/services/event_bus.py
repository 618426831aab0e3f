"""
Event bus - in-memory publish/subscribe

Services publish after their transaction commits; handlers run synchronously
in the publishing thread and a failing handler never affects the publisher
or the other handlers.
"""
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import itertools
import logging
import threading

logger = logging.getLogger(__name__)

_event_ids = itertools.count(1)


@dataclass
class Event:
    """Published event"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # publishing service
    event_id: int = field(default_factory=lambda: next(_event_ids))


Handler = Callable[[Event], None]


class EventBus:
    """
    Thread-safe in-memory event bus (process-wide singleton)

    Usage:
        event_bus.subscribe("checkout.finalized", handler)
        event_bus.publish(Event(...))
        event_bus.unsubscribe("checkout.finalized", handler)
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._subscribers: Dict[str, List[Handler]] = {}
        self._history: deque = deque(maxlen=200)
        self._subscriber_lock = threading.Lock()
        self._initialized = True
        logger.debug("EventBus initialized")

    @staticmethod
    def _key(event_type) -> str:
        # EventType members and plain strings address the same topic
        return getattr(event_type, "value", event_type)

    def subscribe(self, event_type: str, handler: Handler) -> None:
        key = self._key(event_type)
        with self._subscriber_lock:
            handlers = self._subscribers.setdefault(key, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.info(f"Handler {_name(handler)} subscribed to {key}")

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        key = self._key(event_type)
        with self._subscriber_lock:
            handlers = self._subscribers.get(key, [])
            if handler in handlers:
                handlers.remove(handler)
                logger.info(f"Handler {_name(handler)} unsubscribed from {key}")

    def publish(self, event: Event) -> None:
        """
        Deliver event to every subscriber of its type.

        Handler exceptions are logged and do not propagate.
        """
        key = self._key(event.event_type)
        self._history.append(event)

        with self._subscriber_lock:
            handlers = list(self._subscribers.get(key, []))

        if handlers:
            logger.debug(f"Publishing {key} to {len(handlers)} handlers")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {_name(handler)} failed for {key}: {e}",
                    exc_info=True
                )

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """Recent events, newest first"""
        history = list(self._history)
        if event_type:
            key = self._key(event_type)
            history = [e for e in history if self._key(e.event_type) == key]
        return list(reversed(history))[:limit]

    def get_subscribers(self, event_type: Optional[str] = None) -> Dict[str, List[str]]:
        with self._subscriber_lock:
            if event_type:
                key = self._key(event_type)
                return {key: [_name(h) for h in self._subscribers.get(key, [])]}
            return {
                et: [_name(h) for h in handlers]
                for et, handlers in self._subscribers.items()
            }

    def clear_subscribers(self) -> None:
        """Drop every subscription (test helper)"""
        with self._subscriber_lock:
            self._subscribers.clear()

    def clear_history(self) -> None:
        self._history.clear()


def _name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", repr(handler))


# Shared event bus
event_bus = EventBus()
