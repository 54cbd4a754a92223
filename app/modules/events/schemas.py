import datetime as dt
from pydantic import BaseModel, field_validator
from typing import Optional, List, Literal

EventCategory = Literal[
    "General",
    "Music",
    "Food",
    "Tech",
    "Refreshments",
    "Catering/Food",
    "Venue Provider",
]
Visibility = Literal["public", "private"]
ServiceType = Literal["refreshments", "venue", "catering"]


class ServiceData(BaseModel):
    type: ServiceType
    business_id: str
    business_name: str
    product_name: Optional[str] = None


class ServiceBooking(BaseModel):
    """Book a business from the directory; type defaults to what the business offers"""
    business_id: str
    type: Optional[ServiceType] = None
    product_name: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = None
    date: Optional[dt.date] = None
    location: Optional[str] = None
    description: Optional[str] = None
    category: Optional[EventCategory] = None
    visibility: Optional[Visibility] = None
    image: Optional[str] = None

    @field_validator("title", "location")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("must not be blank")
        return value


class EventResponse(BaseModel):
    id: str
    title: str
    date: dt.date
    location: str
    description: Optional[str] = ""
    category: EventCategory = "General"
    visibility: Visibility
    user_id: str
    creator_name: Optional[str] = None
    organizers: List[str] = []
    invited_users: List[str] = []
    pending_invites: List[str] = []
    image: Optional[str] = None
    service: Optional[ServiceData] = None
    invite_link: Optional[str] = None
    archived: bool = False
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class CollaboratorAdd(BaseModel):
    user_id: str
