from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class Comment(DocumentMixin, Base):
    __tablename__ = "comments"
    __document_path__ = "posts/{post_id}/comments/{id}"
    __document_fields__ = {
        "author_id": "authorId",
        "text": "text",
        "parent_comment_id": "parentCommentId",
    }

    id = Column(String, primary_key=True, index=True)
    text = Column(Text)
    author_id = Column(String, ForeignKey("users.id"))
    post_id = Column(String, ForeignKey("posts.id"), index=True)
    parent_comment_id = Column(String, ForeignKey("comments.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
