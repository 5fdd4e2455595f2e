import enum

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class NotificationType(str, enum.Enum):
    FOLLOW = "follow"
    AMEN = "amen"
    COMMENT = "comment"
    REPLY = "reply"
    MENTION = "mention"
    REPOST = "repost"
    FOLLOW_REQUEST_ACCEPTED = "followRequestAccepted"
    MESSAGE = "message"

class Notification(DocumentMixin, Base):
    """Notification record, stored as users/{recipientId}/notifications/{notificationId}"""
    __tablename__ = "notifications"
    __document_path__ = "users/{recipient_id}/notifications/{id}"
    __document_fields__ = {
        "recipient_id": "recipientId",
        "type": "type",
        "actor_id": "actorId",
        "actor_display_name": "actorDisplayName",
        "subject_id": "subjectId",
        "preview": "preview",
        "is_read": "isRead",
        "created_at": "createdAt",
    }

    id = Column(String, primary_key=True, index=True)
    recipient_id = Column(String, ForeignKey("users.id"), index=True)
    type = Column(String)  # one of NotificationType
    actor_id = Column(String)  # The user who triggered the notification
    actor_display_name = Column(String)  # Denormalized at write time
    subject_id = Column(String, nullable=True)  # post or conversation id
    preview = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow, index=True)
