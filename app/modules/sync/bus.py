"""
Process-local sync bus.

Lets separately loaded post lists patch themselves when another surface of
the same session changes a post, without reading the store again. Nothing is
persisted or replayed: a subscriber only sees events published after it
subscribed.
"""
from collections import deque
from typing import Callable, Deque, List, Optional, Type, TypeVar
import asyncio
import logging

from app.modules.sync.events import PostEvent

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=PostEvent)


class Subscription:
    def __init__(self, bus: "SyncBus", event_type: Type[PostEvent], handler: Callable, post_id: Optional[str]):
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.post_id = post_id
        self.active = True

    def matches(self, event: PostEvent) -> bool:
        if not isinstance(event, self.event_type):
            return False
        return self.post_id is None or self.post_id == event.post_id

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._bus._remove(self)


class SyncBus:
    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._queue: Deque[PostEvent] = deque()
        self._dispatching = False

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None], post_id: Optional[str] = None) -> Subscription:
        """Receive events of event_type (and its subclasses), optionally only for one post"""
        subscription = Subscription(self, event_type, handler, post_id)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def clear(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    def publish(self, event: PostEvent) -> None:
        """Deliver event to every matching subscriber, in the order events were published"""
        self._queue.append(event)
        # A publish from inside a handler is delivered after the current event
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                self._deliver(self._queue.popleft())
        finally:
            self._dispatching = False

    def _deliver(self, event: PostEvent) -> None:
        for subscription in list(self._subscriptions):
            if not subscription.active or not subscription.matches(event):
                continue
            try:
                subscription.handler(event)
            except Exception:
                logger.exception(f"Sync handler failed for {type(event).__name__} on post {event.post_id}")

    def publish_threadsafe(self, loop: asyncio.AbstractEventLoop, event: PostEvent) -> None:
        """Publish from another thread on the loop that owns the bus"""
        loop.call_soon_threadsafe(self.publish, event)
