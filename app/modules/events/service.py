from supabase import Client
from app.modules.events.schemas import EventUpdate, EventResponse, ServiceBooking, ServiceData
from app.modules.businesses.schemas import CATEGORY_SERVICE
from app.modules.notifications.service import NotificationService
from app.modules.chats.service import ChatService
from app.core.concurrency import optimistic_update, with_item, without_item
from app.core.dependencies import can_view_event, get_event_or_404
from app.core.errors import backend_error
from app.core.workflow import Workflow
from typing import Any, Callable, Dict, List, Optional
from fastapi import HTTPException
from datetime import date, datetime, timezone
import logging

logger = logging.getLogger(__name__)

# Characters with a meaning inside PostgREST or() filters
_FILTER_RESERVED = str.maketrans({",": " ", "(": " ", ")": " ", "%": " ", "*": " "})


def sanitize_search(term: str) -> str:
    return " ".join(term.translate(_FILTER_RESERVED).split())


def visibility_filter(viewer_id: str) -> str:
    """PostgREST or() filter: public events plus private ones the viewer belongs to"""
    return (
        f"visibility.eq.public,"
        f"organizers.cs.{{{viewer_id}}},"
        f"invited_users.cs.{{{viewer_id}}}"
    )


def event_audience(event: Dict[str, Any]) -> List[str]:
    """Everyone who should hear about changes to an event"""
    audience = []
    for user_id in [event.get("user_id")] + (event.get("organizers") or []) + (event.get("invited_users") or []):
        if user_id and user_id not in audience:
            audience.append(user_id)
    return audience


class EventService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.notifications = NotificationService(supabase)
        self.chats = ChatService(supabase)

    def list_events(
        self,
        viewer_id: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        upcoming_only: bool = False,
        include_archived: bool = False,
        limit: int = 20,
        offset: int = 0
    ) -> List[EventResponse]:
        """List events visible to the viewer. Anonymous viewers only see public events."""
        try:
            query = self.supabase.table("events").select("*")
            if viewer_id:
                query = query.or_(visibility_filter(viewer_id))
            else:
                query = query.eq("visibility", "public")
            if not include_archived:
                query = query.eq("archived", False)
            if category:
                query = query.eq("category", category)
            if upcoming_only:
                query = query.gte("date", date.today().isoformat())
            term = sanitize_search(search or "")
            if term:
                query = query.or_(f"title.ilike.%{term}%,location.ilike.%{term}%")
            result = query.order("date", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [EventResponse(**e) for e in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def list_user_events(self, owner_id: str, viewer_id: Optional[str] = None) -> List[EventResponse]:
        """Events created by owner_id that the viewer is allowed to see"""
        try:
            result = self.supabase.table("events")\
                .select("*")\
                .eq("user_id", owner_id)\
                .eq("archived", False)\
                .order("created_at", desc=True)\
                .execute()
            return [
                EventResponse(**e) for e in (result.data or [])
                if can_view_event(e, viewer_id)
            ]
        except Exception as e:
            raise backend_error(e)

    def get_event(self, event_id: str, viewer_id: Optional[str] = None) -> EventResponse:
        """Get event by ID. Private events are reported missing to outsiders."""
        event = get_event_or_404(event_id, self.supabase)
        if not can_view_event(event, viewer_id):
            raise HTTPException(status_code=404, detail="Event not found")
        return EventResponse(**event)

    def find_by_invite_link(self, invite_link: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("events")\
                .select("*")\
                .eq("invite_link", invite_link)\
                .eq("archived", False)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise backend_error(e)
        if not result.data:
            raise HTTPException(status_code=404, detail="Invite link is invalid or the event has ended")
        return result.data[0]

    def _update_with_notice(
        self,
        event: Dict[str, Any],
        update_data: Dict[str, Any],
        actor_id: str,
        message: str,
        follow_up: Optional[Callable[[Workflow, Dict[str, Any]], None]] = None,
    ) -> EventResponse:
        """Write scalar fields and tell the event audience; restores the old values if a later step fails.

        follow_up(workflow, updated) may add steps that run between the write
        and the audience notice.
        """
        previous = {key: event.get(key) for key in update_data}
        workflow = Workflow("update event")

        def write(values: Dict[str, Any]) -> Dict[str, Any]:
            result = self.supabase.table("events")\
                .update({**values, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", event["id"])\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Event not found")
            return result.data[0]

        try:
            updated = workflow.step("update event", lambda: write(update_data), lambda _: write(previous))
            if update_data.get("visibility") == "private" and event.get("visibility") != "private":
                workflow.step(
                    "make posts private",
                    lambda: self._set_posts_visibility(event["id"], "private"),
                    lambda post_ids: self._set_posts_visibility(event["id"], "public", post_ids),
                )
            if follow_up:
                follow_up(workflow, updated)
            workflow.step(
                "notify audience",
                lambda: self.notifications.notify_event_update(
                    event_audience(updated), updated["id"], updated["title"], message, actor_id
                ),
            )
            return EventResponse(**updated)
        except Exception as e:
            raise backend_error(e)

    def _set_posts_visibility(
        self, event_id: str, visibility: str, post_ids: Optional[List[str]] = None
    ) -> List[str]:
        """Flip the event's posts to visibility, only the listed ones when post_ids is given.
        Returns the ids that changed."""
        if post_ids is not None and not post_ids:
            return []
        query = self.supabase.table("posts")\
            .update({"visibility": visibility})\
            .eq("event_id", event_id)\
            .neq("visibility", visibility)
        if post_ids is not None:
            query = query.in_("id", post_ids)
        result = query.execute()
        changed = [p["id"] for p in (result.data or [])]
        if changed:
            logger.info(f"Made {len(changed)} post(s) of event {event_id} {visibility}")
        return changed

    def update_event(self, event: Dict[str, Any], event_data: EventUpdate, actor_id: str) -> EventResponse:
        """Update event details. Making an event private also makes its posts private."""
        update_data = event_data.model_dump(exclude_none=True, mode="json")
        if not update_data:
            return EventResponse(**event)
        title = update_data.get("title", event["title"])
        return self._update_with_notice(event, update_data, actor_id, f'"{title}" has been updated')

    def set_image(self, event: Dict[str, Any], image_url: str, actor_id: str) -> EventResponse:
        return self._update_with_notice(
            event, {"image": image_url}, actor_id, f'"{event["title"]}" has a new cover image'
        )

    def attach_service(
        self,
        event: Dict[str, Any],
        business: Dict[str, Any],
        booking: ServiceBooking,
        actor_id: str
    ) -> EventResponse:
        """Book a directory business for the event and tell its owner"""
        offered = business.get("services") or []
        service_type = booking.type or (
            offered[0] if offered else CATEGORY_SERVICE.get(business.get("category"), "venue")
        )
        if offered and service_type not in offered:
            raise HTTPException(
                status_code=400, detail=f'{business["name"]} does not offer {service_type}'
            )
        service = ServiceData(
            type=service_type,
            business_id=business["id"],
            business_name=business["name"],
            product_name=booking.product_name,
        )
        booked = booking.product_name or business["name"]

        def notify_provider(workflow: Workflow, updated: Dict[str, Any]) -> None:
            if business["owner_id"] == actor_id:
                return
            workflow.step(
                "notify provider",
                lambda: self.notifications.create(
                    recipient_id=business["owner_id"],
                    type="service_request",
                    event_id=updated["id"],
                    event_title=updated["title"],
                    message=f'{booked} was booked for "{updated["title"]}" on {updated["date"]}',
                    status="unread",
                    user_id=actor_id,
                    business_id=business["id"],
                ),
                lambda notification: self.notifications.delete_many([notification.id]),
            )

        return self._update_with_notice(
            event,
            {"service": service.model_dump()},
            actor_id,
            f'{business["name"]} will provide {service_type} for "{event["title"]}"',
            follow_up=notify_provider,
        )

    def detach_service(self, event: Dict[str, Any], actor_id: str) -> EventResponse:
        if not event.get("service"):
            return EventResponse(**event)
        return self._update_with_notice(
            event, {"service": None}, actor_id, f'The service for "{event["title"]}" has been removed'
        )

    def archive_event(self, event: Dict[str, Any]) -> EventResponse:
        """Soft delete"""
        try:
            result = self.supabase.table("events")\
                .update({"archived": True, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", event["id"])\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Event not found")
            logger.info(f"Archived event {event['id']}")
            return EventResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)

    def _set_organizer(self, event_id: str, user_id: str, present: bool) -> Dict[str, Any]:
        def mutate(row: dict) -> Optional[dict]:
            organizers = row.get("organizers") or []
            if present == (user_id in organizers):
                return None
            if present:
                return {"organizers": with_item(organizers, user_id)}
            return {"organizers": without_item(organizers, user_id)}

        return optimistic_update(self.supabase, "events", event_id, mutate, not_found="Event not found")

    def add_collaborator(self, event: Dict[str, Any], user_id: str, actor_id: str) -> EventResponse:
        """Give user_id organizer rights, make them a chat admin and let them know"""
        if user_id in (event.get("organizers") or []):
            raise HTTPException(status_code=400, detail="User is already an organizer of this event")
        invited = user_id in (event.get("invited_users") or [])
        workflow = Workflow("add collaborator")
        try:
            updated = workflow.step(
                "add organizer",
                lambda: self._set_organizer(event["id"], user_id, True),
                lambda _: self._set_organizer(event["id"], user_id, False),
            )
            workflow.step(
                "make chat admin",
                lambda: self.chats.set_admin(event["id"], user_id, True),
                lambda changed: changed and self.chats.set_admin(event["id"], user_id, False, keep_member=invited),
            )
            workflow.step(
                "notify collaborator",
                lambda: self.notifications.notify_event_update(
                    [user_id], event["id"], event["title"],
                    f'You have been added as an organizer of "{event["title"]}"', actor_id
                ),
            )
            return EventResponse(**updated)
        except Exception as e:
            raise backend_error(e)

    def remove_collaborator(self, event: Dict[str, Any], user_id: str) -> EventResponse:
        """Take organizer rights away. Invited guests stay in the chat as plain members."""
        if user_id == event.get("user_id"):
            raise HTTPException(status_code=400, detail="The event owner cannot be removed from organizers")
        invited = user_id in (event.get("invited_users") or [])
        workflow = Workflow("remove collaborator")
        try:
            updated = workflow.step(
                "remove organizer",
                lambda: self._set_organizer(event["id"], user_id, False),
                lambda _: self._set_organizer(event["id"], user_id, True),
            )
            workflow.step(
                "revoke chat admin",
                lambda: self.chats.set_admin(event["id"], user_id, False, keep_member=invited),
            )
            return EventResponse(**updated)
        except Exception as e:
            raise backend_error(e)

    def archive_past_events(self, before: date) -> int:
        """Archive events dated before the given day. Returns how many were archived."""
        result = self.supabase.table("events")\
            .update({"archived": True, "updated_at": datetime.now(timezone.utc).isoformat()})\
            .eq("archived", False)\
            .lt("date", before.isoformat())\
            .execute()
        return len(result.data or [])
