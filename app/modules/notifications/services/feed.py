"""
Live notification feed.

Every committed change under users/{userId}/notifications re-reads that
user's newest notifications and hands the full list to each open stream of
that user. Listeners live on event loops; trigger handlers may run on any
thread, so snapshots cross over with ``call_soon_threadsafe``.
"""
from typing import AsyncIterator, Dict, List, Tuple
import asyncio
import logging
import threading

import anyio

from app.modules.notifications.schemas.notification import Notification as NotificationSchema
from app.modules.notifications.services.notification import get_user_notifications
from app.modules.notifications.services.triggers import DocumentEvent, HandlerContext, TriggerRegistry

logger = logging.getLogger(__name__)

NOTIFICATION_PATH = "users/{userId}/notifications/{notificationId}"

Snapshot = List[NotificationSchema]


class NotificationFeed:
    def __init__(self, session_factory, limit: int = 100):
        self._session_factory = session_factory
        self.limit = limit
        self._listeners: Dict[str, List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = {}
        self._lock = threading.Lock()

        self.triggers = TriggerRegistry()
        self.triggers.on_create(NOTIFICATION_PATH)(self._on_change)
        self.triggers.on_update(NOTIFICATION_PATH)(self._on_change)
        self.triggers.on_delete(NOTIFICATION_PATH)(self._on_change)

    def _read(self, db, user_id: str) -> Snapshot:
        return [
            NotificationSchema.model_validate(notification)
            for notification in get_user_notifications(db, user_id, limit=self.limit)
        ]

    def load_snapshot(self, user_id: str) -> Snapshot:
        db = self._session_factory()
        try:
            return self._read(db, user_id)
        finally:
            db.close()

    def listener_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(user_id, ()))

    def _on_change(self, event: DocumentEvent, ctx: HandlerContext) -> None:
        user_id = event.params["userId"]
        with self._lock:
            listeners = list(self._listeners.get(user_id, ()))
        if not listeners:
            return

        snapshot = self._read(ctx.db, user_id)
        for loop, queue in listeners:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, snapshot)
            except RuntimeError:
                # Listener's loop already closed; its stream unregisters on exit
                logger.debug(f"Dropped notification snapshot for closed listener of user {user_id}")

    async def stream(self, user_id: str) -> AsyncIterator[Snapshot]:
        """Yield the current snapshot, then a new one after every change"""
        listener = (asyncio.get_running_loop(), asyncio.Queue())
        with self._lock:
            self._listeners.setdefault(user_id, []).append(listener)
        logger.info(f"Notification stream opened for user {user_id}")

        try:
            yield await anyio.to_thread.run_sync(self.load_snapshot, user_id)
            while True:
                yield await listener[1].get()
        finally:
            with self._lock:
                listeners = self._listeners.get(user_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(user_id, None)
            logger.info(f"Notification stream closed for user {user_id}")
