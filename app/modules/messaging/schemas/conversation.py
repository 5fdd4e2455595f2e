from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, model_validator

class ConversationCreate(BaseModel):
    participant_ids: List[str]

class Conversation(BaseModel):
    id: str
    participant_ids: List[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class MessageCreate(BaseModel):
    text: Optional[str] = None
    media_url: Optional[str] = None

    @model_validator(mode="after")
    def require_content(self):
        if not self.text and not self.media_url:
            raise ValueError("A message needs text or a media_url")
        return self

class Message(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    text: Optional[str] = None
    media_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
