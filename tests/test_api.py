import pytest
from starlette.websockets import WebSocketDisconnect

from app.core.security import create_access_token


API = "/api/v1"


@pytest.fixture
def alice(make_user):
    return make_user("alice", "Alice", fcm_token="token-alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob", "Bob")


def test_requests_need_a_valid_token(client):
    assert client.get(f"{API}/notifications").status_code == 401
    response = client.get(f"{API}/notifications", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 403


def test_follow_then_list_and_count(client, auth_headers, alice, bob):
    response = client.post(f"{API}/follows/{alice.id}", headers=auth_headers(bob.id))
    assert response.status_code == 200

    listing = client.get(f"{API}/notifications", headers=auth_headers(alice.id))
    assert listing.status_code == 200
    [notification] = listing.json()
    assert notification["type"] == "follow"
    assert notification["actor_id"] == bob.id
    assert notification["actor_display_name"] == "Bob"

    count = client.get(f"{API}/notifications/unread-count", headers=auth_headers(alice.id))
    assert count.json() == {"unread_count": 1}


def test_cannot_follow_yourself(client, auth_headers, alice):
    response = client.post(f"{API}/follows/{alice.id}", headers=auth_headers(alice.id))
    assert response.status_code == 400


def test_unfollow_removes_notification(client, auth_headers, alice, bob):
    client.post(f"{API}/follows/{alice.id}", headers=auth_headers(bob.id))

    response = client.delete(f"{API}/follows/{alice.id}", headers=auth_headers(bob.id))

    assert response.status_code == 200
    assert client.get(f"{API}/notifications", headers=auth_headers(alice.id)).json() == []


def test_mark_read_and_read_all(client, auth_headers, alice, bob, push_sender):
    post = client.post(f"{API}/posts", json={"content": "Hello"}, headers=auth_headers(alice.id)).json()
    client.post(f"{API}/posts/{post['id']}/amens", headers=auth_headers(bob.id))
    client.post(f"{API}/posts/{post['id']}/comments", json={"text": "Amen!"}, headers=auth_headers(bob.id))
    first, second = client.get(f"{API}/notifications", headers=auth_headers(alice.id)).json()

    read = client.put(f"{API}/notifications/{first['id']}/read", headers=auth_headers(alice.id))
    assert read.status_code == 200
    assert read.json()["is_read"] is True

    read_all = client.put(f"{API}/notifications/read-all", headers=auth_headers(alice.id))
    assert read_all.json() == {"count": 1}
    assert client.get(f"{API}/notifications/unread-count", headers=auth_headers(alice.id)).json() == {"unread_count": 0}
    assert [message.notification.title for message in push_sender.to("token-alice")] == ["New Amen", "New Comment"]


def test_only_recipient_can_touch_a_notification(client, auth_headers, alice, bob):
    client.post(f"{API}/follows/{alice.id}", headers=auth_headers(bob.id))
    [notification] = client.get(f"{API}/notifications", headers=auth_headers(alice.id)).json()

    assert client.put(f"{API}/notifications/{notification['id']}/read", headers=auth_headers(bob.id)).status_code == 403
    assert client.delete(f"{API}/notifications/{notification['id']}", headers=auth_headers(bob.id)).status_code == 403
    assert client.delete(f"{API}/notifications/unknown", headers=auth_headers(alice.id)).status_code == 404


def test_delete_read_notifications(client, auth_headers, alice, bob):
    client.post(f"{API}/follows/{alice.id}", headers=auth_headers(bob.id))
    client.put(f"{API}/notifications/read-all", headers=auth_headers(alice.id))

    response = client.delete(f"{API}/notifications/read", headers=auth_headers(alice.id))

    assert response.json() == {"count": 1}
    assert client.get(f"{API}/notifications", headers=auth_headers(alice.id)).json() == []


def test_amen_takeback_clears_notification(client, auth_headers, alice, bob):
    post = client.post(f"{API}/posts", json={"content": "Hello"}, headers=auth_headers(alice.id)).json()
    amened = client.post(f"{API}/posts/{post['id']}/amens", headers=auth_headers(bob.id)).json()
    assert amened["amen_count"] == 1

    client.delete(f"{API}/posts/{post['id']}/amens", headers=auth_headers(bob.id))

    assert client.get(f"{API}/notifications", headers=auth_headers(alice.id)).json() == []


def test_reply_to_comment_on_other_post_is_rejected(client, auth_headers, alice, bob):
    first = client.post(f"{API}/posts", json={"content": "One"}, headers=auth_headers(alice.id)).json()
    second = client.post(f"{API}/posts", json={"content": "Two"}, headers=auth_headers(alice.id)).json()
    comment = client.post(f"{API}/posts/{first['id']}/comments", json={"text": "hi"}, headers=auth_headers(bob.id)).json()

    response = client.post(
        f"{API}/posts/{second['id']}/comments",
        json={"text": "wrong thread", "parent_comment_id": comment["id"]},
        headers=auth_headers(bob.id),
    )

    assert response.status_code == 400


def test_device_token_registration(client, auth_headers, bob, push_sender):
    response = client.put(f"{API}/users/me/device-token", json={"fcm_token": "token-bob"}, headers=auth_headers(bob.id))
    assert response.json()["has_device_token"] is True

    pushed = client.post(
        f"{API}/notifications/push",
        json={"user_id": bob.id, "title": "Welcome", "body": "Thanks for joining", "data": {"screen": "home"}},
        headers=auth_headers(bob.id),
    )

    assert pushed.json()["success"] is True
    assert push_sender.to("token-bob")[0].data == {"screen": "home"}


def test_push_callable_requires_parameters(client, auth_headers, bob):
    response = client.post(f"{API}/notifications/push", json={"user_id": bob.id}, headers=auth_headers(bob.id))

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required parameters: userId, title, body"


def test_push_callable_reports_missing_token(client, auth_headers, bob):
    response = client.post(
        f"{API}/notifications/push",
        json={"user_id": bob.id, "title": "Hi", "body": "There"},
        headers=auth_headers(bob.id),
    )

    assert response.json() == {
        "success": False,
        "skipped": True,
        "reason": "missing_token",
        "message_id": None,
        "error": None,
    }


def test_conversation_messages_notify_other_participants(client, auth_headers, alice, bob, push_sender):
    conversation = client.post(
        f"{API}/conversations", json={"participant_ids": [alice.id]}, headers=auth_headers(bob.id)
    ).json()

    response = client.post(
        f"{API}/conversations/{conversation['id']}/messages", json={"text": "Coffee?"}, headers=auth_headers(bob.id)
    )

    assert response.status_code == 200
    [notification] = client.get(f"{API}/notifications", headers=auth_headers(alice.id)).json()
    assert notification["type"] == "message"
    assert notification["preview"] == "Coffee?"
    assert push_sender.to("token-alice")[0].notification.title == "Bob"


def test_websocket_streams_snapshots(client, auth_headers, alice, bob):
    with client.websocket_connect(f"{API}/notifications/stream?token={create_access_token(alice.id)}") as websocket:
        initial = websocket.receive_json()
        assert initial == {"notifications": [], "unread_count": 0}

        client.post(f"{API}/follows/{alice.id}", headers=auth_headers(bob.id))

        update = websocket.receive_json()
        assert update["unread_count"] == 1
        assert update["notifications"][0]["type"] == "follow"


def test_websocket_closes_when_the_stream_fails(client, pipeline, alice, monkeypatch):
    def failing_snapshot(user_id):
        raise RuntimeError("database unavailable")
    monkeypatch.setattr(pipeline.feed, "load_snapshot", failing_snapshot)

    with client.websocket_connect(f"{API}/notifications/stream?token={create_access_token(alice.id)}") as websocket:
        with pytest.raises(WebSocketDisconnect) as closed:
            websocket.receive_json()

    assert closed.value.code == 1011


def test_websocket_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"{API}/notifications/stream?token=nope") as websocket:
            websocket.receive_json()


def test_delete_comment_keeps_replies(client, auth_headers, alice, bob):
    post = client.post(f"{API}/posts", json={"content": "Thread"}, headers=auth_headers(alice.id)).json()
    parent = client.post(f"{API}/posts/{post['id']}/comments", json={"text": "root"}, headers=auth_headers(bob.id)).json()
    client.post(
        f"{API}/posts/{post['id']}/comments",
        json={"text": "reply", "parent_comment_id": parent["id"]},
        headers=auth_headers(alice.id),
    )

    assert client.delete(f"{API}/posts/{post['id']}/comments/{parent['id']}", headers=auth_headers(alice.id)).status_code == 403
    assert client.delete(f"{API}/posts/{post['id']}/comments/{parent['id']}", headers=auth_headers(bob.id)).status_code == 200

    [remaining] = client.get(f"{API}/posts/{post['id']}/comments", headers=auth_headers(bob.id)).json()
    assert remaining["text"] == "reply"
    assert remaining["parent_comment_id"] is None


def test_repost_once_and_undo(client, auth_headers, alice, bob):
    post = client.post(f"{API}/posts", json={"content": "Share me"}, headers=auth_headers(alice.id)).json()

    assert client.post(f"{API}/posts/{post['id']}/reposts", headers=auth_headers(bob.id)).status_code == 200
    assert client.post(f"{API}/posts/{post['id']}/reposts", headers=auth_headers(bob.id)).status_code == 400
    assert client.get(f"{API}/posts/{post['id']}", headers=auth_headers(bob.id)).json()["repost_count"] == 1

    assert client.delete(f"{API}/posts/{post['id']}/reposts", headers=auth_headers(bob.id)).status_code == 200
    assert client.get(f"{API}/posts/{post['id']}", headers=auth_headers(bob.id)).json()["repost_count"] == 0
