from typing import Optional
import uuid
from sqlalchemy.orm import Session

from app.modules.posts.reposts.models.repost import Repost

def get_repost(db: Session, user_id: str, post_id: str) -> Optional[Repost]:
    """Get repost by user ID and post ID"""
    return db.query(Repost).filter(Repost.user_id == user_id, Repost.post_id == post_id).first()

def create_repost(db: Session, post_id: str, user_id: str) -> Repost:
    """Repost a post for the user"""
    repost = Repost(
        id=str(uuid.uuid4()),
        user_id=user_id,
        post_id=post_id,
    )
    db.add(repost)
    db.commit()
    db.refresh(repost)
    return repost

def delete_repost(db: Session, repost: Repost) -> Repost:
    """Delete repost"""
    db.delete(repost)
    db.commit()
    return repost
