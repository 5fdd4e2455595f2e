from typing import List, Optional
import uuid
import logging
from sqlalchemy.orm import Session

from app.modules.messaging.models.conversation import Conversation, Message
from app.modules.messaging.schemas.conversation import MessageCreate

logger = logging.getLogger(__name__)

def get_conversation(db: Session, conversation_id: str) -> Optional[Conversation]:
    """Get conversation by ID"""
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()

def create_conversation(db: Session, creator_id: str, participant_ids: List[str]) -> Conversation:
    """Create a conversation; the creator is always a participant"""
    participants = [creator_id]
    for participant_id in participant_ids:
        if participant_id not in participants:
            participants.append(participant_id)

    conversation = Conversation(id=str(uuid.uuid4()), participant_ids=participants)
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation

def get_messages(db: Session, conversation_id: str, skip: int = 0, limit: int = 50) -> List[Message]:
    return db.query(Message).filter(
        Message.conversation_id == conversation_id
    ).order_by(Message.created_at.desc()).offset(skip).limit(limit).all()

def create_message(db: Session, conversation_id: str, sender_id: str, message_in: MessageCreate) -> Message:
    """Store a message; recipients are notified by the message trigger"""
    message = Message(
        id=str(uuid.uuid4()),
        conversation_id=conversation_id,
        sender_id=sender_id,
        text=message_in.text,
        media_url=message_in.media_url,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(f"Message {message.id} sent in conversation {conversation_id}")
    return message
