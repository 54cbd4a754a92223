from pydantic import BaseModel, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from app.modules.events.schemas import Visibility

PostType = Literal["photo", "video"]
FeedSort = Literal["recent", "popular"]


class Comment(BaseModel):
    user_id: str
    text: str
    created_at: datetime


class CommentCreate(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comment must not be empty")
        return value.strip()


class PostResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    media_url: str
    type: PostType
    visibility: Visibility
    likes: List[str] = []
    like_count: int = 0
    comments: List[Comment] = []
    created_at: datetime

    class Config:
        from_attributes = True


class LikeResponse(BaseModel):
    post_id: str
    liked: bool
    like_count: int


class FeedPage(BaseModel):
    items: List[PostResponse]
    next_cursor: Optional[str] = None
