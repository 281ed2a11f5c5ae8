"""In-process progress events for batch runs."""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional

from common.logging_config import get_logger
from vault.utils import get_current_timestamp

logger = get_logger(__name__)

BATCH_PROGRESS = "batch_progress"
BATCH_ERROR = "batch_error"
BATCH_ITEM_DONE = "batch_item_done"
BATCH_COMPLETE = "batch_complete"

DEFAULT_BUFFER_SIZE = 200


@dataclass
class ProgressEvent:
    event_type: str
    batch_id: int
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=get_current_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type,
            "batch_id": self.batch_id,
            "timestamp": self.timestamp,
            **self.payload,
        }


Subscriber = Callable[[ProgressEvent], None]


class EventBus:
    """
    Publishes batch events to subscribers and keeps the most recent events
    of each batch in a bounded buffer.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self._buffer_size = buffer_size
        self._buffers: Dict[int, Deque[ProgressEvent]] = {}
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, event_type: str, batch_id: int, **payload) -> ProgressEvent:
        event = ProgressEvent(event_type=event_type, batch_id=batch_id, payload=payload)

        with self._lock:
            buffer = self._buffers.setdefault(batch_id, deque(maxlen=self._buffer_size))
            buffer.append(event)
            subscribers = list(self._subscribers)

        logger.debug(f"Event {event_type} [batch_id={batch_id}] {payload}")

        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event subscriber failed for {event_type}: {e}", exc_info=True)

        return event

    def events_for(self, batch_id: int, since: Optional[int] = None) -> List[ProgressEvent]:
        """
        Buffered events of a batch, oldest first.

        Args:
            batch_id: Batch to read
            since: Skip this many leading events (for polling clients)
        """
        with self._lock:
            events = list(self._buffers.get(batch_id, ()))
        if since:
            events = events[since:]
        return events

    def clear(self, batch_id: int) -> None:
        with self._lock:
            self._buffers.pop(batch_id, None)
