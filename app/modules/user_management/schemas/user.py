from typing import Optional, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator

class UserBase(BaseModel):
    username: str
    display_name: Optional[str] = None

class UserCreate(UserBase):
    id: str
    email: Optional[str] = None

class DeviceTokenUpdate(BaseModel):
    fcm_token: str

    @field_validator('fcm_token')
    @classmethod
    def validate_token(cls, v):
        if not v.strip():
            raise ValueError("Device token cannot be empty")
        return v.strip()

class NotificationSettingsUpdate(BaseModel):
    """Per-type opt-outs; currently only "messages" is consulted by the fan-out"""
    messages: Optional[bool] = None

class UserInDBBase(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    is_active: bool = True
    created_at: datetime

class User(UserInDBBase):
    """User model returned to client"""
    has_device_token: bool = False
    notification_settings: Dict[str, bool] = {}

    @classmethod
    def from_model(cls, user) -> "User":
        return cls(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            is_active=user.is_active,
            created_at=user.created_at,
            has_device_token=bool(user.fcm_token),
            notification_settings=user.notification_settings or {},
        )
