from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

NotificationType = Literal["join_request", "join_response", "event_update", "service_request"]
NotificationStatus = Literal["pending", "approved", "denied", "unread", "read"]


class NotificationResponse(BaseModel):
    id: str
    recipient_id: str
    type: NotificationType
    event_id: str
    event_title: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    business_id: Optional[str] = None
    message: str
    status: NotificationStatus
    read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread: int
