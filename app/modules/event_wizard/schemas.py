from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from app.modules.events.schemas import EventCategory, Visibility

FIRST_STEP = 1
LAST_STEP = 4


class DraftUpdate(BaseModel):
    title: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    visibility: Optional[Visibility] = None
    category: Optional[EventCategory] = None
    organizers: Optional[List[str]] = None
    description: Optional[str] = None
    selected_image: Optional[str] = None


class DraftResponse(BaseModel):
    id: str
    user_id: str
    step: int = FIRST_STEP
    title: str = ""
    location: str = ""
    date: str = ""
    visibility: Visibility = "public"
    category: EventCategory = "General"
    organizers: List[str] = []
    description: str = ""
    selected_image: Optional[str] = None
    searched_images: List[str] = []
    invite_link: str = ""
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ImageSearchRequest(BaseModel):
    query: str = ""
