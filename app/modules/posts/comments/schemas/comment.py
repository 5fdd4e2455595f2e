from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator

class CommentBase(BaseModel):
    text: str
    parent_comment_id: Optional[str] = None

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError("Comment text cannot be empty")
        return v

class CommentCreate(CommentBase):
    pass

class CommentInDBBase(CommentBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    post_id: str
    created_at: datetime

class Comment(CommentInDBBase):
    """Comment model returned to client"""
    pass
