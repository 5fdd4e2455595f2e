from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import (
    User as UserSchema,
    DeviceTokenUpdate,
    NotificationSettingsUpdate,
)
from app.modules.user_management.services.user import (
    update_device_token,
    update_notification_settings,
)

router = APIRouter()

@router.get("/me", response_model=UserSchema)
def read_user_me(current_user: User = Depends(get_current_user)) -> Any:
    """Get the current user's profile"""
    return UserSchema.from_model(current_user)

@router.put("/me/device-token", response_model=UserSchema)
def register_device_token(
    *,
    db: Session = Depends(get_db),
    token_in: DeviceTokenUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Register the FCM token push messages are delivered to"""
    user = update_device_token(db, current_user, token_in.fcm_token)
    return UserSchema.from_model(user)

@router.delete("/me/device-token", response_model=UserSchema)
def remove_device_token(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Forget the device token (e.g. on sign out); pushes are skipped afterwards"""
    user = update_device_token(db, current_user, None)
    return UserSchema.from_model(user)

@router.put("/me/notification-settings", response_model=UserSchema)
def update_my_notification_settings(
    *,
    db: Session = Depends(get_db),
    settings_in: NotificationSettingsUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Update notification opt-outs"""
    user = update_notification_settings(db, current_user, settings_in)
    return UserSchema.from_model(user)
