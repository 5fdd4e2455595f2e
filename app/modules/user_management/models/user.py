from sqlalchemy import Boolean, Column, String, DateTime, JSON

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class User(DocumentMixin, Base):
    __tablename__ = "users"
    __document_path__ = "users/{id}"
    __document_fields__ = {
        "username": "username",
        "display_name": "displayName",
        "fcm_token": "fcmToken",
        "notification_settings": "notificationSettings",
    }

    id = Column(String, primary_key=True, index=True)
    username = Column(String, unique=True, index=True)
    display_name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    fcm_token = Column(String, nullable=True)  # Push device token registered by the app
    notification_settings = Column(JSON, nullable=True)  # e.g. {"messages": false}
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
