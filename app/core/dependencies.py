"""
Core dependencies for route protection and event access checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user when a bearer token is sent, None for anonymous visitors"""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def is_organizer(event: Dict[str, Any], user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    return user_id == event.get("user_id") or user_id in (event.get("organizers") or [])


def is_member(event: Dict[str, Any], user_id: Optional[str]) -> bool:
    """Organizers and invited users"""
    if not user_id:
        return False
    return is_organizer(event, user_id) or user_id in (event.get("invited_users") or [])


def can_view_event(event: Dict[str, Any], user_id: Optional[str]) -> bool:
    return event.get("visibility") == "public" or is_member(event, user_id)


def get_event_or_404(event_id: str, supabase: Client) -> Dict[str, Any]:
    try:
        result = supabase.table("events")\
            .select("*")\
            .eq("id", event_id)\
            .maybe_single()\
            .execute()
    except Exception as e:
        logger.error(f"Error fetching event {event_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return result.data


def check_event_owner(event_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Return the event if the user created it"""
    event = get_event_or_404(event_id, supabase)
    if event.get("user_id") != user_data["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the event owner can perform this action"
        )
    return event


def check_event_organizer(event_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Return the event if the user is one of its organizers"""
    event = get_event_or_404(event_id, supabase)
    if not is_organizer(event, user_data["id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be an organizer of this event"
        )
    return event


def check_event_member(event_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Return the event if the user is an organizer or has been invited"""
    event = get_event_or_404(event_id, supabase)
    if not is_member(event, user_data["id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be an organizer or an invited guest of this event"
        )
    return event
