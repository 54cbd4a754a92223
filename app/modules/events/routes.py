from fastapi import APIRouter, Depends, UploadFile, File
from app.database.supabase_client import get_supabase
from app.modules.events.schemas import (
    EventUpdate, EventResponse, EventCategory, ServiceBooking, CollaboratorAdd
)
from app.modules.events.service import EventService
from app.modules.businesses.service import BusinessService
from app.modules.media.service import MediaService
from app.core.dependencies import (
    get_current_user, get_optional_user, check_event_owner, check_event_organizer
)
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(supabase: Client = Depends(get_supabase)) -> EventService:
    return EventService(supabase)


def get_business_service(supabase: Client = Depends(get_supabase)) -> BusinessService:
    return BusinessService(supabase)


def get_media_service(supabase: Client = Depends(get_supabase)) -> MediaService:
    return MediaService(supabase)


@router.get("", response_model=List[EventResponse])
async def list_events(
    category: Optional[EventCategory] = None,
    search: Optional[str] = None,
    upcoming_only: bool = False,
    include_archived: bool = False,
    limit: int = 20,
    offset: int = 0,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: EventService = Depends(get_event_service)
):
    """List public events, plus private events the caller organizes or was invited to"""
    viewer_id = user_data["id"] if user_data else None
    return service.list_events(
        viewer_id=viewer_id,
        category=category,
        search=search,
        upcoming_only=upcoming_only,
        include_archived=include_archived,
        limit=limit,
        offset=offset
    )


@router.get("/by-user/{user_id}", response_model=List[EventResponse])
async def list_user_events(
    user_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: EventService = Depends(get_event_service)
):
    """Events created by a user"""
    return service.list_user_events(user_id, user_data["id"] if user_data else None)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: EventService = Depends(get_event_service)
):
    """Get event by ID"""
    return service.get_event(event_id, user_data["id"] if user_data else None)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    supabase: Client = Depends(get_supabase)
):
    """Update event (owner only)"""
    event = check_event_owner(event_id, user_data, supabase)
    return service.update_event(event, event_data, user_data["id"])


@router.delete("/{event_id}", response_model=EventResponse)
async def archive_event(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    supabase: Client = Depends(get_supabase)
):
    """Archive event (owner only). Events are kept, only hidden from listings."""
    event = check_event_owner(event_id, user_data, supabase)
    return service.archive_event(event)


@router.post("/{event_id}/image", response_model=EventResponse)
async def upload_event_image(
    event_id: str,
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    media: MediaService = Depends(get_media_service),
    supabase: Client = Depends(get_supabase)
):
    """Upload a cover image (organizers only)"""
    event = check_event_organizer(event_id, user_data, supabase)
    stored = await media.upload(file, f"events/{event_id}")
    return service.set_image(event, stored.url, user_data["id"])


@router.post("/{event_id}/organizers", response_model=EventResponse, status_code=201)
async def add_collaborator(
    event_id: str,
    collaborator: CollaboratorAdd,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    supabase: Client = Depends(get_supabase)
):
    """Add an organizer (owner only)"""
    event = check_event_owner(event_id, user_data, supabase)
    return service.add_collaborator(event, collaborator.user_id, user_data["id"])


@router.delete("/{event_id}/organizers/{user_id}", response_model=EventResponse)
async def remove_collaborator(
    event_id: str,
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    supabase: Client = Depends(get_supabase)
):
    """Remove an organizer (owner only)"""
    event = check_event_owner(event_id, user_data, supabase)
    return service.remove_collaborator(event, user_id)


@router.put("/{event_id}/service", response_model=EventResponse)
async def attach_service(
    event_id: str,
    booking: ServiceBooking,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    businesses: BusinessService = Depends(get_business_service),
    supabase: Client = Depends(get_supabase)
):
    """Book a refreshments, venue or catering provider from the directory (organizers only)"""
    event = check_event_organizer(event_id, user_data, supabase)
    business = businesses.get_business_row(booking.business_id)
    return service.attach_service(event, business, booking, user_data["id"])


@router.delete("/{event_id}/service", response_model=EventResponse)
async def detach_service(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    supabase: Client = Depends(get_supabase)
):
    """Detach the service provider (organizers only)"""
    event = check_event_organizer(event_id, user_data, supabase)
    return service.detach_service(event, user_data["id"])
