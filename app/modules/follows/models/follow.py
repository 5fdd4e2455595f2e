from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class Follow(DocumentMixin, Base):
    """One-way follow relationship, identified by the ordered (follower, following) pair"""
    __tablename__ = "follows"
    __document_path__ = "follows/{id}"
    __document_fields__ = {"follower_id": "followerId", "following_id": "followingId"}

    id = Column(String, primary_key=True, index=True)
    follower_id = Column(String, ForeignKey('users.id'), index=True)
    following_id = Column(String, ForeignKey('users.id'), index=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint('follower_id', 'following_id', name='unique_follow'),
        CheckConstraint('follower_id != following_id', name='no_self_follow'),
    )

# Follow request model (private accounts)
class FollowRequest(DocumentMixin, Base):
    __tablename__ = "follow_requests"
    __document_path__ = "followRequests/{id}"
    __document_fields__ = {
        "from_user_id": "fromUserId",
        "to_user_id": "toUserId",
        "status": "status",
    }

    id = Column(String, primary_key=True, index=True)
    from_user_id = Column(String, ForeignKey("users.id"))
    to_user_id = Column(String, ForeignKey("users.id"))
    status = Column(String, default="pending")  # pending, accepted, rejected
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
