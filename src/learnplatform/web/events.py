"""Event broadcasting for the Web API.

Relays committed platform events to connected SSE listeners. A listener may
join an address "room" and then only receives events that concern that
address; without an address it receives every event.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable

import structlog

from learnplatform.core.events import PlatformEvent
from learnplatform.core.platform import LearnPlatform

logger = structlog.get_logger(__name__)


@dataclass
class Listener:
    """A connected event-stream client."""

    address: str | None
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue[PlatformEvent | None] = field(default_factory=asyncio.Queue)

    def wants(self, event: PlatformEvent) -> bool:
        return self.address is None or event.concerns(self.address)


class EventBroadcaster:
    """Fans platform events out to per-listener queues."""

    def __init__(self):
        self._listeners: list[Listener] = []
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, platform: LearnPlatform) -> None:
        """Start relaying events from a platform."""
        self.detach()
        self._unsubscribe = platform.subscribe(self.dispatch)

    def detach(self) -> None:
        """Stop relaying events and close all listeners."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for listener in list(self._listeners):
            self._deliver(listener, None)
        self._listeners.clear()

    def join(self, address: str | None = None) -> Listener:
        """Register a listener on the running event loop."""
        listener = Listener(address=address, loop=asyncio.get_running_loop())
        self._listeners.append(listener)
        logger.debug("listener_joined", address=address, listeners=len(self._listeners))
        return listener

    def leave(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
            logger.debug("listener_left", address=listener.address)

    def dispatch(self, event: PlatformEvent) -> None:
        """Platform subscriber: route an event to interested listeners."""
        for listener in list(self._listeners):
            if listener.wants(event):
                self._deliver(listener, event)

    def _deliver(self, listener: Listener, event: PlatformEvent | None) -> None:
        if listener.loop.is_closed():
            self.leave(listener)
            return
        # Platform calls may run outside the listener's loop thread
        listener.loop.call_soon_threadsafe(listener.queue.put_nowait, event)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
