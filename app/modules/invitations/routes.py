from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.invitations.schemas import JoinRequestResponse, InviteLinkJoin
from app.modules.invitations.service import InvitationService
from app.modules.events.schemas import EventResponse
from app.modules.users.schemas import UserSummary
from app.core.dependencies import get_current_user, check_event_organizer
from supabase import Client
from typing import List, Dict

router = APIRouter(tags=["invitations"])


def get_invitation_service(supabase: Client = Depends(get_supabase)) -> InvitationService:
    return InvitationService(supabase)


@router.post("/events/{event_id}/join-requests", response_model=JoinRequestResponse, status_code=201)
async def request_invite(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Ask the organizers for an invite"""
    return service.request_invite(event_id, user_data)


@router.get("/events/{event_id}/join-requests", response_model=List[UserSummary])
async def list_pending(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
    supabase: Client = Depends(get_supabase)
):
    """Users waiting for approval (organizers only)"""
    event = check_event_organizer(event_id, user_data, supabase)
    return service.list_pending(event)


@router.post("/events/{event_id}/join-requests/{user_id}/approve", response_model=EventResponse)
async def approve_request(
    event_id: str,
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
    supabase: Client = Depends(get_supabase)
):
    """Approve a join request (organizers only)"""
    event = check_event_organizer(event_id, user_data, supabase)
    return service.approve(event, user_id)


@router.post("/events/{event_id}/join-requests/{user_id}/deny", response_model=EventResponse)
async def deny_request(
    event_id: str,
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
    supabase: Client = Depends(get_supabase)
):
    """Deny a join request (organizers only)"""
    event = check_event_organizer(event_id, user_data, supabase)
    return service.deny(event, user_id)


@router.post("/invitations/join", response_model=JoinRequestResponse)
async def join_by_link(
    join_data: InviteLinkJoin,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Join a public event or request access to a private one from its invite link"""
    return service.join_by_link(join_data.invite_link, user_data)
