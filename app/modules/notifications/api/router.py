from typing import Any, List
import asyncio

from fastapi import APIRouter, Depends, HTTPException, status, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
import logging

from app.core.security import verify_access_token
from app.db.session import get_db
from app.deps import get_current_user, get_pipeline
from app.modules.user_management.models.user import User
from app.modules.notifications.schemas.notification import (
    Notification as NotificationSchema,
    NotificationCount,
    PushRequest,
    PushResponse,
    UnreadCount,
)
from app.modules.notifications.services.notification import (
    get_notification,
    get_user_notifications,
    count_unread,
    mark_as_read,
    mark_all_as_read,
    delete_notification,
    delete_read_notifications,
)
from app.modules.notifications.services.push import send_push_notification

router = APIRouter()
logger = logging.getLogger(__name__)

def _get_own_notification(db: Session, notification_id: str, user_id: str):
    notification = get_notification(db, notification_id=notification_id)
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )

    if notification.recipient_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return notification

@router.get("", response_model=List[NotificationSchema])
@router.get("/", response_model=List[NotificationSchema])
def read_notifications(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get user's notifications, newest first"""
    return get_user_notifications(db, current_user.id, skip, limit, unread_only)

@router.get("/unread-count", response_model=UnreadCount)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return {"unread_count": count_unread(db, current_user.id)}

# Declared before /{notification_id}/read so "read-all" is not taken as an id
@router.put("/read-all", response_model=NotificationCount)
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark all notifications as read"""
    return {"count": mark_all_as_read(db, current_user.id)}

@router.put("/{notification_id}/read", response_model=NotificationSchema)
def mark_notification_as_read(
    *,
    db: Session = Depends(get_db),
    notification_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark a specific notification as read"""
    notification = _get_own_notification(db, notification_id, current_user.id)
    return mark_as_read(db, notification)

@router.delete("/read", response_model=NotificationCount)
def delete_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete every notification already read"""
    return {"count": delete_read_notifications(db, current_user.id)}

@router.delete("/{notification_id}", response_model=NotificationSchema)
def delete_notification_by_id(
    *,
    db: Session = Depends(get_db),
    notification_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    notification = _get_own_notification(db, notification_id, current_user.id)
    response = NotificationSchema.model_validate(notification)
    delete_notification(db, notification)
    return response

@router.post("/push", response_model=PushResponse)
def push_notification(
    *,
    db: Session = Depends(get_db),
    push_in: PushRequest,
    pipeline=Depends(get_pipeline),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Send an ad-hoc push to one user"""
    try:
        result = send_push_notification(
            db, pipeline.push, push_in.user_id, push_in.title, push_in.body, push_in.data
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    logger.info(f"User {current_user.id} sent a push to {push_in.user_id}: {result.reason or 'sent'}")
    return PushResponse(
        success=result.success,
        skipped=result.skipped,
        reason=result.reason,
        message_id=result.message_id,
        error=result.error,
    )

async def _forward_snapshots(websocket: WebSocket, feed, user_id: str) -> None:
    async for snapshot in feed.stream(user_id):
        await websocket.send_json({
            "notifications": [notification.model_dump(mode="json") for notification in snapshot],
            "unread_count": sum(1 for notification in snapshot if not notification.is_read),
        })

async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Incoming messages are ignored; reading only detects the disconnect
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass

@router.websocket("/stream")
async def notification_stream(websocket: WebSocket, token: str = Query(...)):
    """Stream the full notification list on connect and after every change"""
    user_id = verify_access_token(token)
    if not user_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    forward = asyncio.create_task(_forward_snapshots(websocket, websocket.app.state.pipeline.feed, user_id))
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        done, _ = await asyncio.wait({forward, receiver}, return_when=asyncio.FIRST_COMPLETED)
        if receiver in done:
            logger.info(f"Notification stream client for user {user_id} disconnected")
            return

        receiver.cancel()
        error = forward.exception()
        if error is not None:
            logger.error(f"Notification stream for user {user_id} failed: {error}")
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        else:
            await websocket.close()
    finally:
        for task in (forward, receiver):
            task.cancel()
        await asyncio.gather(forward, receiver, return_exceptions=True)
