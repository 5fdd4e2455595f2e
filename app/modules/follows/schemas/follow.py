from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator

class FollowRequestUpdate(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        allowed_statuses = ["accepted", "rejected"]
        if v not in allowed_statuses:
            raise ValueError(f"Status must be one of: {', '.join(allowed_statuses)}")
        return v

class FollowRequestInDBBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    from_user_id: str
    to_user_id: str
    status: str
    created_at: datetime

class FollowRequest(FollowRequestInDBBase):
    """Follow request model returned to client"""
    pass

class Follow(BaseModel):
    """Follow relationship returned to client"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    follower_id: str
    following_id: str
    created_at: datetime
