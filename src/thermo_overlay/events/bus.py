import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type


@dataclass(kw_only=True)
class Event:
    """Base event class."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(kw_only=True)
class ArtifactRenderedEvent(Event):
    """Published once per successfully composited image."""
    source: Any
    width: int
    height: int
    size_bytes: int


@dataclass(kw_only=True)
class ArtifactExportedEvent(Event):
    """Published after a rendered image has been written to disk."""
    source: Any
    path: Path
    width: int
    height: int
    record_id: Optional[int] = None


@dataclass
class Subscription:
    """Handle returned by subscribe(); can be used to unsubscribe."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Type = Event
    handler: Callable = field(default=lambda e: None)
    active: bool = True

    def cancel(self):
        self.active = False


class EventBus:
    """Synchronous publish/subscribe hub between the pipeline and the UI layer."""

    def __init__(self, logger: logging.Logger = None):
        self._logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[Type[Event], List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[Event], handler: Callable) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler)
        with self._lock:
            self._handlers[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.active = False
        with self._lock:
            for subs in self._handlers.values():
                try:
                    subs.remove(subscription)
                except ValueError:
                    pass

    def publish(self, event: Event):
        event_type = type(event)
        with self._lock:
            subs = list(self._handlers[event_type])

        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(event)
            except Exception:
                self._logger.exception("Handler failed for %s", event_type.__name__)
