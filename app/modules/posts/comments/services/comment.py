from typing import List, Optional
import uuid
import logging
from sqlalchemy.orm import Session

from app.modules.posts.comments.models.comment import Comment
from app.modules.posts.comments.schemas.comment import CommentCreate

logger = logging.getLogger(__name__)

def get_comment(db: Session, comment_id: str) -> Optional[Comment]:
    """Get comment by ID"""
    return db.query(Comment).filter(Comment.id == comment_id).first()

def get_comments_by_post(db: Session, post_id: str, skip: int = 0, limit: int = 100) -> List[Comment]:
    """Get comments by post ID, oldest first"""
    return (
        db.query(Comment)
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def create_comment(db: Session, post_id: str, comment_in: CommentCreate, author_id: str) -> Comment:
    """Create a new comment (or a reply when parent_comment_id is set)"""
    comment = Comment(
        id=str(uuid.uuid4()),
        post_id=post_id,
        author_id=author_id,
        text=comment_in.text,
        parent_comment_id=comment_in.parent_comment_id,
    )

    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment

def delete_comment(db: Session, comment: Comment) -> Comment:
    """Delete comment; its replies stay on the post as top-level comments"""
    for reply in db.query(Comment).filter(Comment.parent_comment_id == comment.id).all():
        reply.parent_comment_id = None
    db.flush()
    db.delete(comment)
    db.commit()
    return comment
