from pydantic import BaseModel, field_validator
from typing import List
from datetime import datetime


class ChatResponse(BaseModel):
    id: str
    event_id: str
    title: str
    admins: List[str] = []
    members: List[str] = []
    created_at: datetime

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message must not be empty")
        return value.strip()


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    user_id: str
    text: str
    created_at: datetime

    class Config:
        from_attributes = True
