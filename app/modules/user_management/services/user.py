from typing import Optional
import logging
from sqlalchemy.orm import Session

from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import UserCreate, NotificationSettingsUpdate

logger = logging.getLogger(__name__)

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username"""
    return db.query(User).filter(User.username == username).first()

def create_user(db: Session, user_in: UserCreate) -> User:
    """Create the profile document for an account issued by the auth provider"""
    user = User(**user_in.model_dump())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def update_device_token(db: Session, user: User, fcm_token: Optional[str]) -> User:
    """Register (or clear with None) the push device token for a user"""
    user.fcm_token = fcm_token
    db.commit()
    db.refresh(user)
    logger.info(f"{'Registered' if fcm_token else 'Cleared'} device token for user {user.id}")
    return user

def update_notification_settings(db: Session, user: User, settings_in: NotificationSettingsUpdate) -> User:
    """Merge notification opt-outs into the user's settings"""
    current = dict(user.notification_settings or {})
    current.update(settings_in.model_dump(exclude_none=True))
    # Assign a new dict so SQLAlchemy sees the JSON column as changed
    user.notification_settings = current
    db.commit()
    db.refresh(user)
    return user
