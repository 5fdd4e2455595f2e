from typing import Optional
import uuid
import logging
from sqlalchemy.orm import Session

from app.modules.follows.models.follow import Follow, FollowRequest

logger = logging.getLogger(__name__)

# Follow operations
def get_follow(db: Session, follower_id: str, following_id: str) -> Optional[Follow]:
    """Get the follow relationship from follower to following"""
    return db.query(Follow).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id
    ).first()

def follow_user(db: Session, follower_id: str, following_id: str) -> Follow:
    """Create a follow relationship; an existing one is returned unchanged"""
    existing = get_follow(db, follower_id, following_id)
    if existing:
        return existing

    follow = Follow(
        id=str(uuid.uuid4()),
        follower_id=follower_id,
        following_id=following_id,
    )
    db.add(follow)
    db.commit()
    db.refresh(follow)
    logger.info(f"User {follower_id} now follows {following_id}")
    return follow

def unfollow_user(db: Session, follower_id: str, following_id: str) -> bool:
    """Remove a follow relationship; the follows/{id} delete trigger cleans up its notification"""
    follow = get_follow(db, follower_id, following_id)
    if not follow:
        return False

    db.delete(follow)
    db.commit()
    logger.info(f"User {follower_id} unfollowed {following_id}")
    return True

# Request operations
def get_follow_request(db: Session, from_user_id: str, to_user_id: str) -> Optional[FollowRequest]:
    """Get follow request by sender and receiver IDs"""
    return db.query(FollowRequest).filter(
        FollowRequest.from_user_id == from_user_id,
        FollowRequest.to_user_id == to_user_id
    ).first()

def get_follow_request_by_id(db: Session, request_id: str) -> Optional[FollowRequest]:
    """Get follow request by ID"""
    return db.query(FollowRequest).filter(FollowRequest.id == request_id).first()

def create_follow_request(db: Session, from_user_id: str, to_user_id: str) -> FollowRequest:
    """Create a pending follow request, re-opening an earlier answered one"""
    existing_request = get_follow_request(db, from_user_id, to_user_id)
    if existing_request:
        if existing_request.status != "pending":
            existing_request.status = "pending"
            db.commit()
            db.refresh(existing_request)
        return existing_request

    follow_request = FollowRequest(
        id=str(uuid.uuid4()),
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        status="pending"
    )
    db.add(follow_request)
    db.commit()
    db.refresh(follow_request)
    return follow_request

def respond_to_follow_request(db: Session, follow_request: FollowRequest, status: str) -> FollowRequest:
    """Accept or reject a follow request; accepting also creates the follow"""
    follow_request.status = status

    if status == "accepted" and not get_follow(db, follow_request.from_user_id, follow_request.to_user_id):
        db.add(Follow(
            id=str(uuid.uuid4()),
            follower_id=follow_request.from_user_id,
            following_id=follow_request.to_user_id,
        ))

    db.commit()
    db.refresh(follow_request)
    logger.info(f"Follow request {follow_request.id} {status}")
    return follow_request
