"""
Session-side notification subscription.

Keeps the current user's notification list in memory from a snapshot stream
and applies read/delete changes optimistically: the local list changes at
once, the write runs in the background, and a failed write puts the old
values back.
"""
from enum import Enum
from typing import AsyncIterator, Callable, List, Optional
import asyncio
import logging

import anyio

from app.modules.notifications.schemas.notification import Notification as NotificationSchema
from app.modules.notifications.services.notification import (
    get_notification,
    mark_as_read,
    mark_many_as_read,
    delete_notification,
)

logger = logging.getLogger(__name__)

SnapshotSource = Callable[[str], AsyncIterator[List[NotificationSchema]]]


class NotificationWriteError(Exception):
    """A local change was rolled back because its write failed; safe to retry"""


class MutationState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class OptimisticUpdate:
    """Handle on one optimistic change; await it to learn how the write ended"""

    def __init__(self, description: str):
        self.description = description
        self.state = MutationState.PENDING
        self.error: Optional[BaseException] = None
        self._done = asyncio.get_running_loop().create_future()

    @classmethod
    def committed(cls, description: str) -> "OptimisticUpdate":
        update = cls(description)
        update._settle(MutationState.COMMITTED)
        return update

    def _settle(self, state: MutationState, error: Optional[BaseException] = None) -> None:
        self.state = state
        self.error = error
        if not self._done.done():
            self._done.set_result(state)

    def __await__(self):
        return self._wait().__await__()

    async def _wait(self) -> "OptimisticUpdate":
        state = await self._done
        if state == MutationState.ROLLED_BACK:
            raise NotificationWriteError(f"{self.description} failed") from self.error
        return self


class SessionNotificationWriter:
    """Writes through the notification services, off the event loop"""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def _mark_read(self, user_id: str, notification_id: str) -> None:
        db = self._session_factory()
        try:
            notification = get_notification(db, notification_id)
            if not notification or notification.recipient_id != user_id:
                raise LookupError(f"Notification {notification_id} not found")
            mark_as_read(db, notification)
        finally:
            db.close()

    def _mark_many_read(self, user_id: str, notification_ids: List[str]) -> None:
        db = self._session_factory()
        try:
            mark_many_as_read(db, user_id, notification_ids)
        finally:
            db.close()

    def _delete(self, user_id: str, notification_id: str) -> None:
        db = self._session_factory()
        try:
            notification = get_notification(db, notification_id)
            if not notification or notification.recipient_id != user_id:
                raise LookupError(f"Notification {notification_id} not found")
            delete_notification(db, notification)
        finally:
            db.close()

    async def mark_read(self, user_id: str, notification_id: str) -> None:
        await anyio.to_thread.run_sync(self._mark_read, user_id, notification_id)

    async def mark_many_read(self, user_id: str, notification_ids: List[str]) -> None:
        await anyio.to_thread.run_sync(self._mark_many_read, user_id, notification_ids)

    async def delete(self, user_id: str, notification_id: str) -> None:
        await anyio.to_thread.run_sync(self._delete, user_id, notification_id)


class NotificationSubscription:
    def __init__(
        self,
        user_id: str,
        source: SnapshotSource,
        writer,
        max_retries: int = 3,
        retry_base_delay: float = 2.0,
        retry_max_delay: float = 30.0,
    ):
        self.user_id = user_id
        self._source = source
        self._writer = writer
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

        self.notifications: List[NotificationSchema] = []
        self.unread_count = 0
        self.connected = False
        self.error: Optional[BaseException] = None

        self._task: Optional[asyncio.Task] = None
        self._writes = set()
        self._listeners: List[Callable[["NotificationSubscription"], None]] = []

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: Callable[["NotificationSubscription"], None]) -> Callable[[], None]:
        """Call listener after every change; returns a function that removes it"""
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return remove

    def _changed(self) -> None:
        self.unread_count = sum(1 for notification in self.notifications if not notification.is_read)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Notification listener failed")

    # Stream

    def start(self) -> None:
        """Open the stream; does nothing while one is already open"""
        if self.running:
            return
        self.error = None
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.connected = False

    async def _run(self) -> None:
        attempt = 0
        while True:
            stream = self._source(self.user_id)
            try:
                async for snapshot in stream:
                    attempt = 0
                    self.connected = True
                    self._apply_snapshot(snapshot)
                self.connected = False
                return
            except Exception as e:
                self.connected = False
                attempt += 1
                if attempt > self.max_retries:
                    logger.error(f"Notification stream for user {self.user_id} gave up after {self.max_retries} retries: {e}")
                    self.error = e
                    self._changed()
                    return
                delay = min(self.retry_base_delay * 2 ** (attempt - 1), self.retry_max_delay)
                logger.warning(f"Notification stream for user {self.user_id} failed ({e}), retrying in {delay}s")
                await asyncio.sleep(delay)
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()

    def _apply_snapshot(self, snapshot: List[NotificationSchema]) -> None:
        # Snapshots can be shared between listeners; keep private copies
        self.notifications = [notification.model_copy() for notification in snapshot]
        self._changed()

    # Optimistic changes

    def _find(self, notification_id: str) -> Optional[NotificationSchema]:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    def _optimistic(self, description: str, revert: Callable[[], None], write) -> OptimisticUpdate:
        self._changed()
        update = OptimisticUpdate(description)
        task = asyncio.get_running_loop().create_task(self._commit(update, revert, write))
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        return update

    async def _commit(self, update: OptimisticUpdate, revert: Callable[[], None], write) -> None:
        try:
            await write()
        except Exception as e:
            logger.warning(f"{update.description} failed, rolling back: {e}")
            revert()
            self._changed()
            update._settle(MutationState.ROLLED_BACK, e)
        else:
            update._settle(MutationState.COMMITTED)

    def _set_read(self, notification_ids: List[str], is_read: bool) -> None:
        for notification_id in notification_ids:
            notification = self._find(notification_id)
            if notification is not None:
                notification.is_read = is_read

    def mark_read(self, notification_id: str) -> OptimisticUpdate:
        description = f"Marking notification {notification_id} read"
        notification = self._find(notification_id)
        if notification is not None and notification.is_read:
            return OptimisticUpdate.committed(description)

        self._set_read([notification_id], True)
        return self._optimistic(
            description,
            lambda: self._set_read([notification_id], False),
            lambda: self._writer.mark_read(self.user_id, notification_id),
        )

    def mark_all_read(self) -> OptimisticUpdate:
        description = "Marking all notifications read"
        unread_ids = [notification.id for notification in self.notifications if not notification.is_read]
        if not unread_ids:
            return OptimisticUpdate.committed(description)

        self._set_read(unread_ids, True)
        return self._optimistic(
            description,
            lambda: self._set_read(unread_ids, False),
            lambda: self._writer.mark_many_read(self.user_id, unread_ids),
        )

    def delete(self, notification_id: str) -> OptimisticUpdate:
        notification = self._find(notification_id)
        index = self.notifications.index(notification) if notification is not None else None
        if notification is not None:
            self.notifications.remove(notification)

        def revert():
            if notification is not None and self._find(notification_id) is None:
                self.notifications.insert(min(index, len(self.notifications)), notification)

        return self._optimistic(
            f"Deleting notification {notification_id}",
            revert,
            lambda: self._writer.delete(self.user_id, notification_id),
        )
