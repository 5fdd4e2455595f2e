from sqlalchemy import Column, String, DateTime, ForeignKey

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class Repost(DocumentMixin, Base):
    __tablename__ = "reposts"
    __document_path__ = "reposts/{id}"
    __document_fields__ = {"user_id": "userId", "post_id": "postId"}

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"))
    post_id = Column(String, ForeignKey("posts.id"), index=True)
    created_at = Column(DateTime, default=utcnow)
