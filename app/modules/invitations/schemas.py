from pydantic import BaseModel
from typing import Literal

JoinStatus = Literal["requested", "already_requested", "joined", "already_member"]


class JoinRequestResponse(BaseModel):
    event_id: str
    user_id: str
    status: JoinStatus


class InviteLinkJoin(BaseModel):
    invite_link: str
