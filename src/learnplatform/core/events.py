"""Platform events and the outbound event bus.

Every committed operation records its events here as part of the commit and
delivers them afterwards. Delivery is decoupled from the commit: a failing
subscriber is logged and skipped, and never undoes the operation that
produced the event.
"""

from __future__ import annotations

import itertools
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

# How many recent events the bus keeps for late readers
DEFAULT_HISTORY_SIZE = 1000


class PlatformEventType(str, Enum):
    """Kinds of events emitted by the platform."""

    USER_REGISTERED = "UserRegistered"
    SKILL_CREATED = "SkillCreated"
    SKILL_STATUS_CHANGED = "SkillStatusChanged"
    SESSION_STARTED = "SessionStarted"
    SESSION_COMPLETED = "SessionCompleted"
    ASSESSMENT_SUBMITTED = "AssessmentSubmitted"
    SESSION_CANCELLED = "SessionCancelled"
    TRANSFER = "Transfer"
    TOKENS_MINTED = "TokensMinted"


@dataclass
class PlatformEvent:
    """An event emitted after a committed operation.

    ``addresses`` lists every account the event concerns, so that listeners
    can route it to per-address rooms.
    """

    event_type: PlatformEventType
    data: dict[str, Any] = field(default_factory=dict)
    addresses: tuple[str, ...] = ()
    seq: int = 0
    timestamp: int = 0

    def concerns(self, address: str) -> bool:
        """Whether this event involves an address (case-insensitive)."""
        wanted = address.lower()
        return any(a.lower() == wanted for a in self.addresses)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "seq": self.seq,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "addresses": list(self.addresses),
            "data": dict(self.data),
        }


Subscriber = Callable[[PlatformEvent], None]


class EventBus:
    """Fan-out of committed events to subscribers, plus a bounded history.

    Publishing is split in two steps. ``record`` stamps the sequence number
    and appends to history; callers run it while their commit is still held,
    so seq order is commit order. ``flush`` then hands pending events to
    subscribers strictly in seq order, outside any commit lock.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        self._subscribers: list[Subscriber] = []
        self._history: deque[PlatformEvent] = deque(maxlen=history_size)
        self._pending: deque[PlatformEvent] = deque()
        self._seq = itertools.count(1)
        self._lock = threading.Lock()
        # Reentrant: a subscriber may trigger operations that publish
        self._delivery_lock = threading.RLock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for every future event.

        Returns:
            A function that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def record(self, event: PlatformEvent) -> PlatformEvent:
        """Stamp an event and queue it for delivery."""
        with self._lock:
            event.seq = next(self._seq)
            if not event.timestamp:
                event.timestamp = int(time.time())
            self._history.append(event)
            self._pending.append(event)
        return event

    def flush(self) -> None:
        """Deliver every queued event to all subscribers, in seq order."""
        with self._delivery_lock:
            while True:
                with self._lock:
                    if not self._pending:
                        return
                    event = self._pending.popleft()
                    subscribers = list(self._subscribers)
                self._deliver(event, subscribers)

    def publish(self, event: PlatformEvent) -> PlatformEvent:
        """Record an event and deliver it right away."""
        self.record(event)
        self.flush()
        return event

    def _deliver(self, event: PlatformEvent, subscribers: list[Subscriber]) -> None:
        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.warning(
                    "event_delivery_failed",
                    event_type=event.event_type.value,
                    seq=event.seq,
                    error=str(e),
                )

    def history(self, since_seq: int = 0) -> list[PlatformEvent]:
        """Recent events with seq greater than since_seq, oldest first."""
        with self._lock:
            return [e for e in self._history if e.seq > since_seq]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
