from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import NotificationResponse, NotificationStatus, UnreadCountResponse
from app.modules.notifications.service import NotificationService
from app.modules.invitations.service import InvitationService
from app.modules.events.schemas import EventResponse
from app.core.dependencies import get_current_user, check_event_organizer
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


def get_invitation_service(supabase: Client = Depends(get_supabase)) -> InvitationService:
    return InvitationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    status: Optional[NotificationStatus] = None,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """The caller's inbox, newest first"""
    return service.list_notifications(user_data["id"], status=status, limit=limit, offset=offset)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return UnreadCountResponse(unread=service.unread_count(user_data["id"]))


@router.post("/read-all")
async def mark_all_read(
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark every notification as read"""
    return {"updated": service.mark_all_read(user_data["id"])}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(notification_id, user_data["id"])


def _pending_join_request(notification: NotificationResponse) -> NotificationResponse:
    if notification.type != "join_request" or not notification.user_id:
        raise HTTPException(status_code=400, detail="Only join requests can be approved or denied")
    if notification.status != "pending":
        raise HTTPException(status_code=409, detail=f"This request has already been {notification.status}")
    return notification


@router.post("/{notification_id}/approve", response_model=EventResponse)
async def approve_join_request(
    notification_id: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
    invitations: InvitationService = Depends(get_invitation_service),
    supabase: Client = Depends(get_supabase)
):
    """Approve the join request behind a notification"""
    notification = _pending_join_request(service.get_notification(notification_id, user_data["id"]))
    event = check_event_organizer(notification.event_id, user_data, supabase)
    return invitations.approve(event, notification.user_id)


@router.post("/{notification_id}/deny", response_model=EventResponse)
async def deny_join_request(
    notification_id: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
    invitations: InvitationService = Depends(get_invitation_service),
    supabase: Client = Depends(get_supabase)
):
    """Deny the join request behind a notification"""
    notification = _pending_join_request(service.get_notification(notification_id, user_data["id"]))
    event = check_event_organizer(notification.event_id, user_data, supabase)
    return invitations.deny(event, notification.user_id)
