from typing import List, Optional
import uuid
import logging
from sqlalchemy.orm import Session

from app.modules.notifications.models.notification import Notification, NotificationType
from app.modules.notifications.schemas.notification import NotificationCreate

logger = logging.getLogger(__name__)

def get_notification(db: Session, notification_id: str) -> Optional[Notification]:
    """Get notification by ID"""
    return db.query(Notification).filter(Notification.id == notification_id).first()

def get_user_notifications(db: Session, user_id: str, skip: int = 0, limit: int = 100, unread_only: bool = False) -> List[Notification]:
    """Get notifications for a user, newest first"""
    query = db.query(Notification).filter(Notification.recipient_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read == False)

    return query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

def count_unread(db: Session, user_id: str) -> int:
    return db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read == False
    ).count()

def create_notification(db: Session, notification_in: NotificationCreate) -> Notification:
    """Create a new notification record (unread)"""
    notification = Notification(
        id=str(uuid.uuid4()),
        is_read=False,
        **notification_in.model_dump(mode="json"),
    )

    db.add(notification)
    db.commit()
    db.refresh(notification)

    return notification

def mark_as_read(db: Session, notification: Notification) -> Notification:
    """Mark a notification as read"""
    notification.is_read = True

    db.add(notification)
    db.commit()
    db.refresh(notification)

    return notification

def mark_many_as_read(db: Session, user_id: str, notification_ids: List[str]) -> int:
    """Mark the given notifications of a user as read in one transaction"""
    # Loaded through the ORM (not a bulk UPDATE) so each change reaches the feed
    notifications = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.id.in_(notification_ids),
        Notification.is_read == False
    ).all()

    for notification in notifications:
        notification.is_read = True

    db.commit()
    return len(notifications)

def mark_all_as_read(db: Session, user_id: str) -> int:
    """Mark all notifications as read for a user"""
    notifications = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read == False
    ).all()

    for notification in notifications:
        notification.is_read = True

    db.commit()
    return len(notifications)

def delete_notification(db: Session, notification: Notification) -> Notification:
    """Delete a notification"""
    db.delete(notification)
    db.commit()

    return notification

def delete_read_notifications(db: Session, user_id: str) -> int:
    """Delete every read notification of a user"""
    notifications = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read == True
    ).all()

    for notification in notifications:
        db.delete(notification)

    db.commit()
    return len(notifications)

def _delete_matching(db: Session, query) -> int:
    notifications = query.all()
    for notification in notifications:
        db.delete(notification)
    db.commit()
    return len(notifications)

def delete_follow_notifications(db: Session, recipient_id: str, actor_id: str) -> int:
    """Remove every follow notification sent by actor to recipient (unfollow)"""
    deleted = _delete_matching(db, db.query(Notification).filter(
        Notification.recipient_id == recipient_id,
        Notification.actor_id == actor_id,
        Notification.type == NotificationType.FOLLOW.value
    ))
    logger.info(f"Removed {deleted} follow notification(s) for {recipient_id} from {actor_id}")
    return deleted

def delete_amen_notifications(db: Session, recipient_id: str, actor_id: str, post_id: str) -> int:
    """Remove the amen notifications for a post once the amen is taken back"""
    deleted = _delete_matching(db, db.query(Notification).filter(
        Notification.recipient_id == recipient_id,
        Notification.actor_id == actor_id,
        Notification.subject_id == post_id,
        Notification.type == NotificationType.AMEN.value
    ))
    logger.info(f"Removed {deleted} amen notification(s) for post {post_id} from {actor_id}")
    return deleted
