"""Push delivery through Firebase Cloud Messaging"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging

from firebase_admin import messaging
from sqlalchemy.orm import Session

from app.core.firebase import initialize_firebase
from app.modules.notifications.services.notification import count_unread
from app.modules.user_management.services.user import get_user

logger = logging.getLogger(__name__)

SKIP_PUSH_DISABLED = "push_disabled"
SKIP_USER_NOT_FOUND = "user_not_found"
SKIP_MISSING_TOKEN = "missing_token"

ANDROID_CHANNEL_ID = "amen_notifications"


@dataclass
class PushResult:
    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None


def firebase_sender(message: messaging.Message) -> str:
    """Send one message with the default Firebase app and return its message id"""
    firebase_app = initialize_firebase()
    if firebase_app is None:
        raise RuntimeError("Firebase is not initialized")
    return messaging.send(message, app=firebase_app)


def build_message(token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None,
                  badge: int = 1) -> messaging.Message:
    # FCM data payload values must be strings
    payload = {key: str(value) for key, value in (data or {}).items() if value is not None}
    return messaging.Message(
        notification=messaging.Notification(title=title, body=body),
        data=payload,
        token=token,
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(aps=messaging.Aps(badge=badge, sound="default", content_available=True)),
        ),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(sound="default", channel_id=ANDROID_CHANNEL_ID),
        ),
    )


class PushDispatcher:
    def __init__(self, sender: Optional[Callable[[messaging.Message], str]] = None, enabled: bool = True):
        self._sender = sender or firebase_sender
        self.enabled = enabled

    def send_to_user(self, db: Session, user_id: str, title: str, body: str,
                     data: Optional[Dict[str, Any]] = None) -> PushResult:
        """Send a push to the device registered by a user; never raises"""
        if not self.enabled:
            logger.debug(f"Push disabled, not notifying user {user_id}")
            return PushResult(success=False, skipped=True, reason=SKIP_PUSH_DISABLED)

        user = get_user(db, user_id)
        if not user:
            logger.warning(f"User {user_id} not found when sending push")
            return PushResult(success=False, skipped=True, reason=SKIP_USER_NOT_FOUND)

        if not user.fcm_token:
            logger.info(f"User {user_id} has no device token, skipping push")
            return PushResult(success=False, skipped=True, reason=SKIP_MISSING_TOKEN)

        try:
            # The iOS badge shows the unread count, never less than one for a fresh push
            badge = max(count_unread(db, user_id), 1)
            message_id = self._sender(build_message(user.fcm_token, title, body, data, badge))
        except Exception as e:
            logger.error(f"Error sending push to user {user_id}: {e}")
            return PushResult(success=False, error=str(e))

        logger.info(f"Push sent to user {user_id}: {message_id}")
        return PushResult(success=True, message_id=message_id)


def send_push_notification(db: Session, push: PushDispatcher, user_id: Optional[str], title: Optional[str],
                           body: Optional[str], data: Optional[Dict[str, Any]] = None) -> PushResult:
    """Callable entry point: push an arbitrary title/body to one user"""
    if not user_id or not title or not body:
        raise ValueError("Missing required parameters: userId, title, body")
    return push.send_to_user(db, user_id, title, body, data)
