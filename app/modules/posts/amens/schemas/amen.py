from datetime import datetime
from pydantic import BaseModel, ConfigDict

class AmenInDBBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    post_id: str
    created_at: datetime

class Amen(AmenInDBBase):
    """Amen model returned to client"""
    pass

class AmenCount(BaseModel):
    """Amen total for a post and whether the current user is part of it"""
    post_id: str
    amen_count: int
    has_amened: bool
