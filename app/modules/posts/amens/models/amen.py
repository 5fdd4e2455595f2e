from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class Amen(DocumentMixin, Base):
    """An "amen" reaction on a post, stored as posts/{postId}/likes/{likeId}"""
    __tablename__ = "amens"
    __document_path__ = "posts/{post_id}/likes/{id}"
    __document_fields__ = {"user_id": "userId"}

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"))
    post_id = Column(String, ForeignKey("posts.id"), index=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'post_id', name='unique_amen'),
    )
