from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user
from app.modules.messaging.schemas.conversation import (
    Conversation as ConversationSchema,
    ConversationCreate,
    Message as MessageSchema,
    MessageCreate,
)
from app.modules.messaging.services.conversation import (
    get_conversation,
    create_conversation,
    get_messages,
    create_message,
)

router = APIRouter()

def _get_own_conversation(db: Session, conversation_id: str, user_id: str):
    conversation = get_conversation(db, conversation_id=conversation_id)
    if not conversation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
    if user_id not in (conversation.participant_ids or []):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a participant of this conversation"
        )
    return conversation

@router.post("", response_model=ConversationSchema)
@router.post("/", response_model=ConversationSchema)
def start_conversation(
    *,
    db: Session = Depends(get_db),
    conversation_in: ConversationCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    for participant_id in conversation_in.participant_ids:
        if not get_user(db, participant_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User {participant_id} not found"
            )
    return create_conversation(db, current_user.id, conversation_in.participant_ids)

@router.get("/{conversation_id}/messages", response_model=List[MessageSchema])
def read_messages(
    *,
    db: Session = Depends(get_db),
    conversation_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
) -> Any:
    _get_own_conversation(db, conversation_id, current_user.id)
    return get_messages(db, conversation_id, skip, limit)

@router.post("/{conversation_id}/messages", response_model=MessageSchema)
def send_message(
    *,
    db: Session = Depends(get_db),
    conversation_id: str,
    message_in: MessageCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    _get_own_conversation(db, conversation_id, current_user.id)
    return create_message(db, conversation_id, current_user.id, message_in)
