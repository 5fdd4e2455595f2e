from datetime import datetime
from pydantic import BaseModel, ConfigDict

class RepostInDBBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    post_id: str
    created_at: datetime

class Repost(RepostInDBBase):
    """Repost model returned to client"""
    pass
