from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class Post(DocumentMixin, Base):
    __tablename__ = "posts"
    __document_path__ = "posts/{id}"
    __document_fields__ = {"author_id": "authorId", "content": "content"}

    id = Column(String, primary_key=True, index=True)
    content = Column(Text)
    author_id = Column(String, ForeignKey("users.id"), index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Comments, amens and reposts live in their own modules and refer back by post_id
