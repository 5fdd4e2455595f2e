from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.posts.api.router import validate_post
from app.modules.posts.comments.schemas.comment import Comment as CommentSchema, CommentCreate
from app.modules.posts.comments.services.comment import get_comment, get_comments_by_post, create_comment, delete_comment

router = APIRouter()

@router.get("", response_model=List[CommentSchema])
@router.get("/", response_model=List[CommentSchema])
def read_comments(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: User = Depends(get_current_user),
) -> Any:
    validate_post(db, post_id)
    return get_comments_by_post(db, post_id, skip, limit)

@router.post("", response_model=CommentSchema)
@router.post("/", response_model=CommentSchema)
def create_new_comment(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Comment on a post, or reply to a comment of the same post"""
    validate_post(db, post_id)

    if comment_in.parent_comment_id:
        parent = get_comment(db, comment_id=comment_in.parent_comment_id)
        if not parent:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Comment not found"
            )
        if parent.post_id != post_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Comment does not belong to the specified post"
            )

    return create_comment(db, post_id, comment_in, current_user.id)

@router.delete("/{comment_id}", response_model=CommentSchema)
def delete_comment_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    comment_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    comment = get_comment(db, comment_id=comment_id)
    if not comment or comment.post_id != post_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )
    if comment.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    response = CommentSchema.model_validate(comment)
    delete_comment(db, comment)
    return response
