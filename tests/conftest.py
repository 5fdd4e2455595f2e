"""Shared fixtures: a throwaway SQLite database and an installed notification pipeline."""
import os
import tempfile
import uuid

# Settings and the engine are built at import time, so configure them first
_db_dir = tempfile.mkdtemp(prefix="amen-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["PUSH_ENABLED"] = "true"
os.environ["TRIGGER_WORKERS"] = "0"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.security import create_access_token
from app.db.init_db import create_all_tables, drop_all_tables
from app.db.session import SessionLocal
from app.modules.notifications.models.notification import Notification
from app.modules.notifications.services.pipeline import build_pipeline
from app.modules.user_management.schemas.user import UserCreate
from app.modules.user_management.services.user import create_user, update_device_token


class FakePushSender:
    """Stands in for firebase messaging.send and remembers what was sent"""

    def __init__(self):
        self.messages = []
        self.fail = False

    def __call__(self, message):
        if self.fail:
            raise RuntimeError("FCM unavailable")
        self.messages.append(message)
        return f"projects/test/messages/{len(self.messages)}"

    def to(self, token):
        return [message for message in self.messages if message.token == token]


@pytest.fixture(autouse=True)
def database():
    create_all_tables()
    yield
    drop_all_tables()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def pipeline(push_sender):
    notification_pipeline = build_pipeline(SessionLocal, settings, push_sender=push_sender)
    notification_pipeline.install()
    yield notification_pipeline
    notification_pipeline.shutdown()


@pytest.fixture
def make_user(db):
    def factory(username, display_name=None, fcm_token=None):
        user = create_user(db, UserCreate(
            id=str(uuid.uuid4()),
            username=username,
            display_name=display_name,
        ))
        if fcm_token:
            update_device_token(db, user, fcm_token)
        return user
    return factory


@pytest.fixture
def notifications_for(db):
    def query(user_id, notification_type=None):
        db.expire_all()
        rows = db.query(Notification).filter(Notification.recipient_id == user_id)
        if notification_type:
            rows = rows.filter(Notification.type == notification_type)
        return rows.order_by(Notification.created_at).all()
    return query


@pytest.fixture
def client(pipeline):
    from app.main import app

    app.state.pipeline = pipeline
    with TestClient(app) as test_client:
        yield test_client
    app.state.pipeline = None


@pytest.fixture
def auth_headers():
    def headers(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return headers
