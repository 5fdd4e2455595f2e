from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON

from app.db.document import DocumentMixin, utcnow
from app.db.session import Base

class Conversation(DocumentMixin, Base):
    __tablename__ = "conversations"
    __document_path__ = "conversations/{id}"
    __document_fields__ = {"participant_ids": "participantIds"}

    id = Column(String, primary_key=True, index=True)
    participant_ids = Column(JSON, default=list)  # user ids, including the creator
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

class Message(DocumentMixin, Base):
    __tablename__ = "messages"
    __document_path__ = "conversations/{conversation_id}/messages/{id}"
    __document_fields__ = {
        "sender_id": "senderId",
        "text": "text",
        "media_url": "mediaUrl",
    }

    id = Column(String, primary_key=True, index=True)
    conversation_id = Column(String, ForeignKey("conversations.id"), index=True)
    sender_id = Column(String, ForeignKey("users.id"))
    text = Column(Text, nullable=True)
    media_url = Column(String, nullable=True)  # Photo messages carry no text
    created_at = Column(DateTime, default=utcnow)
