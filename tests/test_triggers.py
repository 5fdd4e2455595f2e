from app.db.session import SessionLocal
from app.modules.notifications.models.notification import NotificationType
from app.modules.notifications.schemas.notification import NotificationCreate
from app.modules.notifications.services.notification import create_notification
from app.modules.notifications.services.triggers import (
    DocumentEvent,
    TriggerDispatcher,
    TriggerRegistry,
    EVENT_CREATE,
    EVENT_UPDATE,
    EVENT_DELETE,
    match_path,
)
from app.modules.posts.schemas.post import PostCreate
from app.modules.posts.services.post import create_post, delete_post


def test_match_path_extracts_wildcards():
    assert match_path("posts/{postId}/comments/{commentId}", "posts/p1/comments/c9") == {
        "postId": "p1",
        "commentId": "c9",
    }
    assert match_path("posts/{postId}", "posts/p1/comments/c9") is None
    assert match_path("follows/{followId}", "reposts/r1") is None


def _recording_dispatcher():
    registry = TriggerRegistry()
    seen = []

    @registry.on_create("posts/{postId}")
    def created(event, ctx):
        seen.append(event)

    @registry.on_update("posts/{postId}")
    def updated(event, ctx):
        seen.append(event)

    @registry.on_delete("posts/{postId}")
    def deleted(event, ctx):
        seen.append(event)

    return TriggerDispatcher(SessionLocal, [registry]), seen


def test_committed_writes_become_document_events(db, make_user):
    dispatcher, seen = _recording_dispatcher()
    author = make_user("hank")
    dispatcher.install()
    try:
        post = create_post(db, PostCreate(content="first draft"), author.id)
        post.content = "final"
        db.commit()
        delete_post(db, post)
    finally:
        dispatcher.uninstall()

    assert [event.event_type for event in seen] == [EVENT_CREATE, EVENT_UPDATE, EVENT_DELETE]
    created, updated, deleted = seen
    assert created.params == {"postId": post.id}
    assert created.data == {"authorId": author.id, "content": "first draft"}
    assert updated.before["content"] == "first draft"
    assert updated.data["content"] == "final"
    assert deleted.data is None
    assert deleted.before["content"] == "final"


def test_update_after_an_earlier_commit_keeps_previous_body(db, make_user):
    author = make_user("jude")
    post = create_post(db, PostCreate(content="first draft"), author.id)
    # Commit expires every loaded attribute of the post
    db.commit()
    dispatcher, seen = _recording_dispatcher()
    dispatcher.install()
    try:
        post.content = "final"
        db.commit()
    finally:
        dispatcher.uninstall()

    [updated] = seen
    assert updated.event_type == EVENT_UPDATE
    assert updated.before == {"authorId": author.id, "content": "first draft"}
    assert updated.data == {"authorId": author.id, "content": "final"}


def test_notification_events_carry_created_at(db, make_user):
    registry = TriggerRegistry()
    seen = []

    @registry.on_create("users/{userId}/notifications/{notificationId}")
    def created(event, ctx):
        seen.append(event)

    recipient = make_user("kate")
    dispatcher = TriggerDispatcher(SessionLocal, [registry])
    dispatcher.install()
    try:
        notification = create_notification(db, NotificationCreate(
            recipient_id=recipient.id,
            type=NotificationType.FOLLOW,
            actor_id="someone",
            actor_display_name="Someone",
        ))
    finally:
        dispatcher.uninstall()

    [event] = seen
    assert event.params == {"userId": recipient.id, "notificationId": notification.id}
    assert event.data["createdAt"] == notification.created_at.isoformat()
    assert event.data["isRead"] is False


def test_uninstalled_dispatcher_sees_nothing(db, make_user):
    dispatcher, seen = _recording_dispatcher()
    dispatcher.install()
    dispatcher.uninstall()

    create_post(db, PostCreate(content="quiet"), make_user("ivy").id)

    assert seen == []


def test_failing_handler_does_not_stop_others():
    registry = TriggerRegistry()
    calls = []

    @registry.on_create("reposts/{repostId}")
    def broken(event, ctx):
        calls.append("broken")
        raise RuntimeError("boom")

    @registry.on_create("reposts/{repostId}")
    def healthy(event, ctx):
        calls.append("healthy")

    TriggerDispatcher(SessionLocal, [registry]).dispatch(DocumentEvent(EVENT_CREATE, "reposts/r1", data={}))

    assert calls == ["broken", "healthy"]


def test_worker_pool_dispatch():
    registry = TriggerRegistry()
    calls = []

    @registry.on_create("reposts/{repostId}")
    def record(event, ctx):
        calls.append(event.params["repostId"])

    dispatcher = TriggerDispatcher(SessionLocal, [registry], workers=2)
    dispatcher.dispatch(DocumentEvent(EVENT_CREATE, "reposts/r1", data={}))
    dispatcher.dispatch(DocumentEvent(EVENT_CREATE, "reposts/r2", data={}))
    dispatcher.shutdown()

    assert sorted(calls) == ["r1", "r2"]
