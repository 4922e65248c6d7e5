import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

from .events.base_event import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], Any]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Handler) -> None:
        logger.debug("[EVENTBUS] Subscribing %s to %s", getattr(handler, "__name__", handler), event_type)
        with self._lock:
            if handler not in self._subscribers[event_type]:
                self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: DomainEvent) -> List[Any]:
        with self._lock:
            handlers = list(self._subscribers.get(event.event_type, []))
        logger.info(
            "[EVENTBUS] Publishing %s (%s) to %s handlers.",
            event.event_type,
            event.get_aggregate_id(),
            len(handlers),
        )
        results: List[Any] = []
        for handler in handlers:
            results.append(handler(event))
        return results


event_bus = EventBus()
