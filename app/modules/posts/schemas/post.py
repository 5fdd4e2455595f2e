from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

class PostBase(BaseModel):
    content: str

class PostCreate(PostBase):
    pass

class PostInDBBase(PostBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    created_at: datetime

class Post(PostInDBBase):
    """Post model returned to client"""
    pass

class PostWithCounts(PostInDBBase):
    """Post as shown in a list: counts and the viewer's saved flag can be patched locally"""
    amen_count: int = 0
    comment_count: int = 0
    repost_count: int = 0
    has_amened: bool = False
    is_saved: bool = False
