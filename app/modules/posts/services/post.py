from typing import Optional
import uuid
import logging

from sqlalchemy.orm import Session
from sqlalchemy import func

from app.modules.posts.models.post import Post
from app.modules.posts.schemas.post import PostCreate, PostWithCounts
from app.modules.posts.comments.models.comment import Comment
from app.modules.posts.amens.models.amen import Amen
from app.modules.posts.reposts.models.repost import Repost

logger = logging.getLogger(__name__)

def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get post by ID"""
    return db.query(Post).filter(Post.id == post_id).first()

def get_post_with_counts(db: Session, post: Post, viewer_id: Optional[str] = None) -> PostWithCounts:
    """Build the list representation of a post with its counters"""
    amen_count = db.query(func.count(Amen.id)).filter(Amen.post_id == post.id).scalar() or 0
    comment_count = db.query(func.count(Comment.id)).filter(Comment.post_id == post.id).scalar() or 0
    repost_count = db.query(func.count(Repost.id)).filter(Repost.post_id == post.id).scalar() or 0
    has_amened = False
    if viewer_id:
        has_amened = db.query(Amen.id).filter(Amen.post_id == post.id, Amen.user_id == viewer_id).first() is not None

    return PostWithCounts(
        id=post.id,
        author_id=post.author_id,
        content=post.content,
        created_at=post.created_at,
        amen_count=amen_count,
        comment_count=comment_count,
        repost_count=repost_count,
        has_amened=has_amened,
    )

def create_post(db: Session, post_in: PostCreate, author_id: str) -> Post:
    """Create a new post; mention notifications are produced by the posts/{postId} trigger"""
    post = Post(
        id=str(uuid.uuid4()),
        author_id=author_id,
        content=post_in.content,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Created post {post.id} for user {author_id}")
    return post

def delete_post(db: Session, post: Post) -> Post:
    """Delete a post together with its comments, amens and reposts"""
    # Detach replies first so comment rows can go in any order
    for reply in db.query(Comment).filter(Comment.post_id == post.id, Comment.parent_comment_id.isnot(None)).all():
        reply.parent_comment_id = None
    db.flush()

    # Row-by-row deletes so every removed document raises its own delete event
    for model in (Comment, Amen, Repost):
        for row in db.query(model).filter(model.post_id == post.id).all():
            db.delete(row)
    db.delete(post)
    db.commit()
    logger.info(f"Deleted post {post.id}")
    return post
