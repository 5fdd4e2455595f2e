from typing import Optional
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.modules.posts.amens.models.amen import Amen
from app.modules.posts.amens.schemas.amen import AmenCount

def get_amen(db: Session, user_id: str, post_id: str) -> Optional[Amen]:
    """Get amen by user ID and post ID"""
    return (
        db.query(Amen)
        .filter(Amen.user_id == user_id, Amen.post_id == post_id)
        .first()
    )

def get_amen_count(db: Session, post_id: str, user_id: str) -> AmenCount:
    """Get the amen total for a post"""
    count = db.query(func.count(Amen.id)).filter(Amen.post_id == post_id).scalar() or 0
    return AmenCount(
        post_id=post_id,
        amen_count=count,
        has_amened=get_amen(db, user_id, post_id) is not None,
    )

def create_amen(db: Session, post_id: str, user_id: str) -> Amen:
    """Say amen to a post; saying it twice keeps the existing row"""
    existing_amen = get_amen(db, user_id, post_id)
    if existing_amen:
        return existing_amen

    amen = Amen(
        id=str(uuid.uuid4()),
        user_id=user_id,
        post_id=post_id,
    )
    db.add(amen)
    db.commit()
    db.refresh(amen)
    return amen

def delete_amen(db: Session, amen: Amen) -> Amen:
    """Delete amen"""
    db.delete(amen)
    db.commit()
    return amen
