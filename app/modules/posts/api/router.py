from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.posts.schemas.post import Post as PostSchema, PostCreate, PostWithCounts
from app.modules.posts.services.post import get_post, create_post, delete_post, get_post_with_counts

router = APIRouter()
logger = logging.getLogger("app")

def validate_post(db: Session, post_id: str):
    """Validate post exists and return it or raise HTTPException"""
    post = get_post(db, post_id=post_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post

@router.post("", response_model=PostSchema)
@router.post("/", response_model=PostSchema)
def create_new_post(
    *,
    db: Session = Depends(get_db),
    post_in: PostCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Create a post; @username mentions are notified by the post trigger"""
    return create_post(db, post_in, current_user.id)

@router.get("/{post_id}", response_model=PostWithCounts)
def read_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    post = validate_post(db, post_id)
    return get_post_with_counts(db, post, viewer_id=current_user.id)

@router.delete("/{post_id}", response_model=PostSchema)
def delete_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    post = validate_post(db, post_id)
    if post.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    # Build the response before the row is gone
    response = PostSchema.model_validate(post)
    delete_post(db, post)
    return response
