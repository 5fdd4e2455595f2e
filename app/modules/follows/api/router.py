from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user
from app.modules.follows.schemas.follow import (
    Follow as FollowSchema,
    FollowRequest as FollowRequestSchema,
    FollowRequestUpdate,
)
from app.modules.follows.services.follow import (
    follow_user,
    unfollow_user,
    get_follow_request,
    get_follow_request_by_id,
    create_follow_request,
    respond_to_follow_request,
)

router = APIRouter()
logger = logging.getLogger(__name__)

def _check_target_user(db: Session, user_id: str, current_user_id: str) -> User:
    """Validate the target user exists and is not the caller"""
    user = get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    if user_id == current_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot follow yourself"
        )
    return user

@router.post("/{user_id}", response_model=FollowSchema)
def follow(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    _check_target_user(db, user_id, current_user.id)
    return follow_user(db, current_user.id, user_id)

@router.delete("/{user_id}", response_model=dict)
def unfollow(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    if not unfollow_user(db, current_user.id, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not following this user"
        )
    return {"message": "Unfollowed", "user_id": user_id}

@router.post("/requests/{user_id}", response_model=FollowRequestSchema)
def send_follow_request(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    _check_target_user(db, user_id, current_user.id)

    existing_request = get_follow_request(db, current_user.id, user_id)
    if existing_request and existing_request.status == "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Follow request already sent"
        )

    return create_follow_request(db, current_user.id, user_id)

@router.put("/requests/{request_id}", response_model=FollowRequestSchema)
def respond_to_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    request_in: FollowRequestUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    follow_request = get_follow_request_by_id(db, request_id=request_id)
    if not follow_request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Follow request not found"
        )

    # Only the receiver can answer a request
    if follow_request.to_user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )

    if follow_request.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Follow request already {follow_request.status}"
        )

    return respond_to_follow_request(db, follow_request, request_in.status)
