"""
Server-side state of the four step event creation wizard.

Step 1 collects the details, step 2 the co-organizers (picked among the
creator's followers), step 3 the description and cover image, step 4 shows a
preview. Confirming the draft writes the event, its group chat and the
co-organizer notifications, then deletes the draft.
"""

import datetime as dt
import random
import string
import time
import uuid
from supabase import Client
from app.config import settings
from app.modules.event_wizard.schemas import DraftUpdate, DraftResponse, FIRST_STEP, LAST_STEP
from app.modules.event_wizard.image_search import ImageSearch
from app.modules.events.schemas import EventResponse
from app.modules.notifications.service import NotificationService
from app.modules.chats.service import ChatService
from app.modules.users.service import UserService
from app.modules.users.schemas import UserSummary
from app.modules.auth.service import default_display_name
from app.core.errors import backend_error
from app.core.workflow import Workflow
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

_LINK_ALPHABET = string.digits + string.ascii_lowercase


def new_share_link(base_url: Optional[str] = None) -> str:
    """Timestamp based invite link; unique enough for sharing, not a secret"""
    base_url = (base_url or settings.invite_base_url).rstrip("/")
    suffix = "".join(random.choices(_LINK_ALPHABET, k=9))
    return f"{base_url}/{int(time.time() * 1000)}-{suffix}"


def parse_event_date(value: str) -> dt.date:
    value = value.strip()
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return dt.datetime.fromisoformat(value).date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid event date")


def organizer_list(owner_id: str, organizers: Optional[List[str]]) -> List[str]:
    """Owner first, then the others in order, without duplicates"""
    return list(dict.fromkeys([owner_id] + [o for o in (organizers or []) if o]))


def missing_details(draft: Dict[str, Any]) -> List[str]:
    return [field for field in ("title", "location", "date") if not (draft.get(field) or "").strip()]


class EventWizardService:
    def __init__(self, supabase: Client, image_search: Optional[ImageSearch] = None):
        self.supabase = supabase
        self.image_search = image_search or ImageSearch()
        self.notifications = NotificationService(supabase)
        self.chats = ChatService(supabase)
        self.users = UserService(supabase)

    def _get_draft(self, draft_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("event_drafts")\
            .select("*")\
            .eq("id", draft_id)\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Draft not found")
        return result.data

    def _save(self, draft_id: str, update_data: Dict[str, Any]) -> DraftResponse:
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("event_drafts")\
            .update(update_data)\
            .eq("id", draft_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Draft not found")
        return DraftResponse(**result.data[0])

    def start_draft(self, user_id: str) -> DraftResponse:
        """Open a new wizard on step 1"""
        try:
            result = self.supabase.table("event_drafts").insert({
                "user_id": user_id,
                "step": FIRST_STEP,
                "title": "",
                "location": "",
                "date": "",
                "visibility": "public",
                "category": "General",
                "organizers": [user_id],
                "description": "",
                "selected_image": None,
                "searched_images": [],
                "invite_link": "",
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to start event draft")
            return DraftResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)

    def get_draft(self, draft_id: str, user_id: str) -> DraftResponse:
        try:
            return DraftResponse(**self._get_draft(draft_id, user_id))
        except Exception as e:
            raise backend_error(e)

    def list_drafts(self, user_id: str) -> List[DraftResponse]:
        """Unfinished wizards, most recently touched first"""
        try:
            result = self.supabase.table("event_drafts")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [DraftResponse(**d) for d in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def collaborator_candidates(self, user_id: str) -> List[UserSummary]:
        """Co-organizers are picked among the creator's followers"""
        return self.users.list_followers(user_id)

    def update_draft(self, draft_id: str, user_id: str, changes: DraftUpdate) -> DraftResponse:
        try:
            draft = self._get_draft(draft_id, user_id)
            update_data = changes.model_dump(exclude_none=True)
            if "organizers" in update_data:
                organizers = organizer_list(user_id, update_data["organizers"])
                added = [o for o in organizers if o not in (draft.get("organizers") or [])]
                if added:
                    profile = self.users.get_profile(user_id) or {}
                    followers = profile.get("followers") or []
                    strangers = [o for o in added if o not in followers]
                    if strangers:
                        raise HTTPException(
                            status_code=400,
                            detail="Collaborators must be chosen among your followers"
                        )
                update_data["organizers"] = organizers
            if not update_data:
                return DraftResponse(**draft)
            return self._save(draft_id, update_data)
        except Exception as e:
            raise backend_error(e)

    def next_step(self, draft_id: str, user_id: str) -> DraftResponse:
        """Advance one step. Leaving step 1 needs a title, a location and a date."""
        try:
            draft = self._get_draft(draft_id, user_id)
            step = draft.get("step") or FIRST_STEP
            if step == FIRST_STEP:
                missing = missing_details(draft)
                if missing:
                    raise HTTPException(
                        status_code=400,
                        detail=f"Please fill in: {', '.join(missing)}"
                    )
            if step >= LAST_STEP:
                return DraftResponse(**draft)
            return self._save(draft_id, {"step": step + 1})
        except Exception as e:
            raise backend_error(e)

    def prev_step(self, draft_id: str, user_id: str) -> DraftResponse:
        try:
            draft = self._get_draft(draft_id, user_id)
            step = draft.get("step") or FIRST_STEP
            if step <= FIRST_STEP:
                return DraftResponse(**draft)
            return self._save(draft_id, {"step": step - 1})
        except Exception as e:
            raise backend_error(e)

    def search_images(self, draft_id: str, user_id: str, query: str) -> DraftResponse:
        """Replace the draft's image suggestions. An empty query clears them."""
        try:
            self._get_draft(draft_id, user_id)
            try:
                images = self.image_search.search(query)
            except HTTPException:
                self._save(draft_id, {"searched_images": []})
                raise
            return self._save(draft_id, {"searched_images": images})
        except Exception as e:
            raise backend_error(e)

    def create_share_link(self, draft_id: str, user_id: str) -> DraftResponse:
        try:
            self._get_draft(draft_id, user_id)
            return self._save(draft_id, {"invite_link": new_share_link()})
        except Exception as e:
            raise backend_error(e)

    def _cover_image(self, draft: Dict[str, Any], profile: Dict[str, Any]) -> str:
        searched = draft.get("searched_images") or []
        return (
            draft.get("selected_image")
            or profile.get("photo_url")
            or (searched[0] if searched else None)
            or settings.default_event_image
        )

    def _delete_event(self, event_id: str) -> None:
        self.supabase.table("events").delete().eq("id", event_id).execute()

    def _insert_event(self, event_data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.supabase.table("events").insert(event_data).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create event")
        return result.data[0]

    def confirm(self, draft_id: str, user_data: dict) -> EventResponse:
        """Create the event described by the draft"""
        user_id = user_data["id"]
        try:
            draft = self._get_draft(draft_id, user_id)
            missing = missing_details(draft)
            if missing:
                raise HTTPException(status_code=400, detail="Title, location, and date are required")
            event_date = parse_event_date(draft["date"])
            if event_date < dt.date.today():
                raise HTTPException(status_code=400, detail="Event date must be in the future")

            profile = self.users.get_profile(user_id) or {}
            organizers = organizer_list(user_id, draft.get("organizers"))
            event_id = str(uuid.uuid4())
            title = draft["title"].strip()
            event_data = {
                "id": event_id,
                "title": title,
                "user_id": user_id,
                "creator_name": profile.get("display_name") or default_display_name(user_data.get("email")),
                "date": event_date.isoformat(),
                "location": draft["location"].strip(),
                "description": draft.get("description") or "",
                "category": draft.get("category") or "General",
                "visibility": draft.get("visibility") or "public",
                "image": self._cover_image(draft, profile),
                "organizers": organizers,
                "invited_users": [],
                "pending_invites": [],
                "invite_link": draft.get("invite_link") or f"{settings.invite_base_url.rstrip('/')}/{event_id}",
                "service": None,
                "archived": False,
                "version": 0,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }

            workflow = Workflow("confirm event draft")
            event = workflow.step(
                "insert event",
                lambda: self._insert_event(event_data),
                lambda _: self._delete_event(event_id),
            )
            workflow.step(
                "create group chat",
                lambda: self.chats.create_group_chat(event_id, title, admins=organizers, members=[]),
                lambda chat: self.chats.delete_chat(chat.id),
            )
            workflow.step(
                "notify co-organizers",
                lambda: self.notifications.notify_event_update(
                    organizers, event_id, title,
                    f'You have been added as an organizer of "{title}"', user_id
                ),
                lambda sent: self.notifications.delete_many([n.id for n in sent]),
            )
            workflow.step(
                "delete draft",
                lambda: self.supabase.table("event_drafts").delete().eq("id", draft_id).execute(),
            )
        except Exception as e:
            raise backend_error(e)
        logger.info(f"User {user_id} created event {event_id} with {len(organizers)} organizer(s)")
        return EventResponse(**event)
