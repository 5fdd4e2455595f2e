import asyncio
from datetime import datetime, timedelta

import pytest

from app.core.config import settings
from app.db.session import SessionLocal
from app.modules.follows.services.follow import follow_user
from app.modules.notifications.schemas.notification import Notification as NotificationSchema
from app.modules.notifications.services.subscription import (
    MutationState,
    NotificationSubscription,
    NotificationWriteError,
)
from app.session import UserSession


def make_record(notification_id, is_read=False, minutes_ago=0):
    return NotificationSchema(
        id=notification_id,
        recipient_id="me",
        type="follow",
        actor_id="them",
        actor_display_name="Them",
        is_read=is_read,
        created_at=datetime(2026, 1, 1) - timedelta(minutes=minutes_ago),
    )


class QueueSource:
    """Snapshot source fed by the test; each call is one connection"""

    def __init__(self, failures=0):
        self.calls = 0
        self.failures = failures
        self.queue = asyncio.Queue()

    async def __call__(self, user_id):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("stream dropped")
        while True:
            yield await self.queue.get()


class RecordingWriter:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self.release = asyncio.Event()
        self.release.set()

    async def _write(self, *call):
        self.calls.append(call)
        await self.release.wait()
        if self.fail:
            raise ConnectionError("write rejected")

    async def mark_read(self, user_id, notification_id):
        await self._write("mark_read", notification_id)

    async def mark_many_read(self, user_id, notification_ids):
        await self._write("mark_many_read", tuple(notification_ids))

    async def delete(self, user_id, notification_id):
        await self._write("delete", notification_id)


async def wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
async def subscription():
    source = QueueSource()
    writer = RecordingWriter()
    sub = NotificationSubscription("me", source, writer, retry_base_delay=0)
    sub.start()
    await source.queue.put([make_record("n1"), make_record("n2", minutes_ago=1), make_record("n3", is_read=True, minutes_ago=2)])
    await wait_for(lambda: len(sub.notifications) == 3)
    yield sub, source, writer
    await sub.stop()


async def test_snapshot_sets_unread_count_and_notifies(subscription):
    sub, source, writer = subscription
    counts = []
    sub.add_listener(lambda s: counts.append(s.unread_count))

    assert sub.unread_count == 2
    await source.queue.put([make_record("n1", is_read=True)])
    await wait_for(lambda: counts)

    assert counts == [0]
    assert sub.connected is True


async def test_start_is_idempotent(subscription):
    sub, source, writer = subscription

    sub.start()
    sub.start()
    await asyncio.sleep(0.05)

    assert source.calls == 1


async def test_stop_is_safe_when_idle():
    sub = NotificationSubscription("me", QueueSource(), RecordingWriter())

    await sub.stop()
    await sub.stop()

    assert sub.running is False


async def test_mark_all_read_is_optimistic(subscription):
    sub, source, writer = subscription
    writer.release.clear()

    update = sub.mark_all_read()

    assert sub.unread_count == 0
    assert all(notification.is_read for notification in sub.notifications)
    assert update.state == MutationState.PENDING

    writer.release.set()
    await update
    assert update.state == MutationState.COMMITTED
    assert writer.calls == [("mark_many_read", ("n1", "n2"))]


async def test_mark_all_read_with_nothing_unread_writes_nothing(subscription):
    sub, source, writer = subscription
    await sub.mark_all_read()

    update = sub.mark_all_read()

    assert update.state == MutationState.COMMITTED
    assert len(writer.calls) == 1


async def test_failed_mark_read_rolls_back(subscription):
    sub, source, writer = subscription
    writer.fail = True

    update = sub.mark_read("n1")
    assert sub.unread_count == 1

    with pytest.raises(NotificationWriteError):
        await update

    assert update.state == MutationState.ROLLED_BACK
    assert isinstance(update.error, ConnectionError)
    assert sub.unread_count == 2
    assert sub.notifications[0].is_read is False


async def test_failed_delete_restores_position(subscription):
    sub, source, writer = subscription
    writer.fail = True

    update = sub.delete("n2")
    assert [n.id for n in sub.notifications] == ["n1", "n3"]

    with pytest.raises(NotificationWriteError):
        await update
    assert [n.id for n in sub.notifications] == ["n1", "n2", "n3"]


async def test_local_changes_do_not_leak_into_shared_snapshot():
    source = QueueSource()
    sub = NotificationSubscription("me", source, RecordingWriter())
    shared = [make_record("n1")]
    sub.start()
    await source.queue.put(shared)
    await wait_for(lambda: sub.notifications)

    await sub.mark_read("n1")
    await sub.stop()

    assert shared[0].is_read is False


async def test_stream_errors_are_retried():
    source = QueueSource(failures=2)
    sub = NotificationSubscription("me", source, RecordingWriter(), max_retries=3, retry_base_delay=0)
    sub.start()
    await source.queue.put([make_record("n1")])

    await wait_for(lambda: sub.notifications)
    assert source.calls == 3
    assert sub.error is None
    await sub.stop()


async def test_gives_up_after_max_retries():
    source = QueueSource(failures=10)
    sub = NotificationSubscription("me", source, RecordingWriter(), max_retries=2, retry_base_delay=0)
    sub.start()

    await wait_for(lambda: not sub.running)

    assert source.calls == 3
    assert isinstance(sub.error, ConnectionError)


async def test_mark_read_round_trip_through_feed(pipeline, make_user):
    me = make_user("jane", "Jane")
    friend = make_user("kyle", "Kyle")

    async with UserSession.for_pipeline(me.id, pipeline, SessionLocal, settings) as session:
        subscription = session.notifications
        await wait_for(lambda: subscription.connected)

        db = SessionLocal()
        try:
            follow_user(db, friend.id, me.id)
        finally:
            db.close()
        await wait_for(lambda: subscription.unread_count == 1)
        notification_id = subscription.notifications[0].id

        await subscription.mark_read(notification_id)

        # The committed write comes back through the feed as a fresh snapshot
        snapshot = pipeline.feed.load_snapshot(me.id)
        assert snapshot[0].is_read is True
        await wait_for(lambda: subscription.notifications[0].is_read and subscription.unread_count == 0)

    assert pipeline.feed.listener_count(me.id) == 0
