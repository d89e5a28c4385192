from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any

DEFAULT_MAX_EVENTS = 10_000


class EventStore:
    """In-memory event log shared by request handlers.

    Holds at most *max_events* events; recording past that drops the oldest.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        if max_events < 1:
            raise ValueError(f"max_events must be positive, got {max_events}")
        self._events: deque[dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    @property
    def max_events(self) -> int:
        return self._events.maxlen

    def record_event(self, event_type: str, data: dict[str, Any]) -> None:
        event = {
            "type": event_type,
            "timestamp": time.time(),
            **data,
        }
        with self._lock:
            self._events.append(event)

    def get_events(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
