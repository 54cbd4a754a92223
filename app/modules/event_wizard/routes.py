from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.event_wizard.schemas import DraftUpdate, DraftResponse, ImageSearchRequest
from app.modules.event_wizard.service import EventWizardService
from app.modules.events.schemas import EventResponse
from app.modules.users.schemas import UserSummary
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/event-drafts", tags=["event wizard"])


def get_wizard_service(supabase: Client = Depends(get_supabase)) -> EventWizardService:
    return EventWizardService(supabase)


@router.post("", response_model=DraftResponse, status_code=201)
async def start_draft(
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    """Start the event creation wizard"""
    return service.start_draft(user_data["id"])


@router.get("", response_model=List[DraftResponse])
async def list_drafts(
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    return service.list_drafts(user_data["id"])


@router.get("/collaborators", response_model=List[UserSummary])
async def collaborator_candidates(
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    """Followers that can be added as co-organizers"""
    return service.collaborator_candidates(user_data["id"])


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(
    draft_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    return service.get_draft(draft_id, user_data["id"])


@router.patch("/{draft_id}", response_model=DraftResponse)
async def update_draft(
    draft_id: str,
    changes: DraftUpdate,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    """Save the fields of the current step"""
    return service.update_draft(draft_id, user_data["id"], changes)


@router.post("/{draft_id}/next", response_model=DraftResponse)
async def next_step(
    draft_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    return service.next_step(draft_id, user_data["id"])


@router.post("/{draft_id}/prev", response_model=DraftResponse)
async def prev_step(
    draft_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    return service.prev_step(draft_id, user_data["id"])


@router.post("/{draft_id}/images/search", response_model=DraftResponse)
async def search_images(
    draft_id: str,
    search: ImageSearchRequest,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    """Suggest cover images for the event"""
    return service.search_images(draft_id, user_data["id"], search.query)


@router.post("/{draft_id}/share-link", response_model=DraftResponse)
async def create_share_link(
    draft_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    return service.create_share_link(draft_id, user_data["id"])


@router.post("/{draft_id}/confirm", response_model=EventResponse, status_code=201)
async def confirm_draft(
    draft_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventWizardService = Depends(get_wizard_service)
):
    """Create the event and its group chat from the draft"""
    return service.confirm(draft_id, user_data)
