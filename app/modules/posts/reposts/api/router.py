from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.posts.api.router import validate_post
from app.modules.posts.reposts.schemas.repost import Repost as RepostSchema
from app.modules.posts.reposts.services.repost import get_repost, create_repost, delete_repost

router = APIRouter()

@router.post("", response_model=RepostSchema)
@router.post("/", response_model=RepostSchema)
def repost(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    validate_post(db, post_id)
    if get_repost(db, current_user.id, post_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Post already reposted"
        )
    return create_repost(db, post_id, current_user.id)

@router.delete("", response_model=RepostSchema)
@router.delete("/", response_model=RepostSchema)
def undo_repost(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    repost = get_repost(db, current_user.id, post_id)
    if not repost:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Repost not found"
        )
    response = RepostSchema.model_validate(repost)
    delete_repost(db, repost)
    return response
