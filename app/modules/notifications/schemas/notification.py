from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.modules.notifications.models.notification import NotificationType

class NotificationBase(BaseModel):
    type: NotificationType
    actor_id: str
    actor_display_name: str
    subject_id: Optional[str] = None
    preview: Optional[str] = None

class NotificationCreate(NotificationBase):
    recipient_id: str

class Notification(NotificationBase):
    """Notification record returned to client"""
    id: str
    recipient_id: str
    is_read: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

class UnreadCount(BaseModel):
    unread_count: int

class NotificationCount(BaseModel):
    count: int

class PushRequest(BaseModel):
    """Body of the callable push entry point; presence of the fields is checked by the callable"""
    user_id: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[dict] = None

class PushResponse(BaseModel):
    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None
