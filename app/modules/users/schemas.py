from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: str
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    followers: List[str] = []
    following: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: str
    display_name: str
    photo_url: Optional[str] = None


class FollowResponse(BaseModel):
    user_id: str
    target_id: str
    following: bool
    followers_count: int
