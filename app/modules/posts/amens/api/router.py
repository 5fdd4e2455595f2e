from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.posts.api.router import validate_post
from app.modules.posts.amens.schemas.amen import AmenCount
from app.modules.posts.amens.services.amen import get_amen, get_amen_count, create_amen, delete_amen

router = APIRouter()

@router.post("", response_model=AmenCount)
@router.post("/", response_model=AmenCount)
def say_amen(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Say amen to a post"""
    validate_post(db, post_id)
    create_amen(db, post_id, current_user.id)
    return get_amen_count(db, post_id, current_user.id)

@router.delete("", response_model=AmenCount)
@router.delete("/", response_model=AmenCount)
def remove_amen(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Take back an amen"""
    validate_post(db, post_id)
    amen = get_amen(db, current_user.id, post_id)
    if not amen:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Amen not found"
        )
    delete_amen(db, amen)
    return get_amen_count(db, post_id, current_user.id)
