"""
Join request / approval workflow.

A request for a private event adds the requester to pending_invites and drops a
join_request notification in the owner's inbox. An organizer's decision moves
the id out of pending_invites (into invited_users when approved), settles the
join_request notifications and answers the requester with a join_response.
Each sequence runs as a Workflow so a failed write undoes the earlier ones.
"""

from supabase import Client
from app.modules.invitations.schemas import JoinRequestResponse
from app.modules.events.schemas import EventResponse
from app.modules.events.service import EventService
from app.modules.notifications.service import NotificationService
from app.modules.chats.service import ChatService
from app.modules.users.service import UserService
from app.modules.users.schemas import UserSummary
from app.modules.auth.service import default_display_name
from app.core.concurrency import optimistic_update, with_item, without_item
from app.core.dependencies import get_event_or_404, is_member
from app.core.errors import backend_error
from app.core.workflow import Workflow
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class InvitationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.notifications = NotificationService(supabase)
        self.chats = ChatService(supabase)
        self.users = UserService(supabase)
        self.events = EventService(supabase)

    def _display_name(self, user_data: dict) -> str:
        profile = self.users.get_profile(user_data["id"])
        if profile and profile.get("display_name"):
            return profile["display_name"]
        return default_display_name(user_data.get("email"))

    def _set_membership(self, event_id: str, user_id: str, pending: bool, invited: bool) -> Dict[str, Any]:
        """Put user_id in or out of pending_invites and invited_users"""
        def mutate(row: dict) -> Optional[dict]:
            changes = {}
            current_pending = row.get("pending_invites") or []
            if pending != (user_id in current_pending):
                changes["pending_invites"] = with_item(current_pending, user_id) if pending \
                    else without_item(current_pending, user_id)
            current_invited = row.get("invited_users") or []
            if invited != (user_id in current_invited):
                changes["invited_users"] = with_item(current_invited, user_id) if invited \
                    else without_item(current_invited, user_id)
            return changes

        return optimistic_update(self.supabase, "events", event_id, mutate, not_found="Event not found")

    def request_invite(self, event_id: str, user_data: dict) -> JoinRequestResponse:
        """Ask to join a private event. Repeating the request changes nothing.
        Public events need no approval and are joined right away."""
        user_id = user_data["id"]
        event = get_event_or_404(event_id, self.supabase)
        if event.get("archived"):
            raise HTTPException(status_code=400, detail="This event has ended")
        if is_member(event, user_id):
            raise HTTPException(status_code=400, detail="You are already a member of this event")
        if event.get("visibility") == "public":
            return self._join_public(event, user_id)

        added = False

        def add_pending(row: dict) -> Optional[dict]:
            nonlocal added
            if is_member(row, user_id):
                raise HTTPException(status_code=400, detail="You are already a member of this event")
            pending = row.get("pending_invites") or []
            added = user_id not in pending
            if not added:
                return None
            return {"pending_invites": with_item(pending, user_id)}

        workflow = Workflow("request invite")
        try:
            workflow.step(
                "add to pending invites",
                lambda: optimistic_update(self.supabase, "events", event_id, add_pending, not_found="Event not found"),
                lambda _: added and self._set_membership(event_id, user_id, pending=False, invited=False),
            )
            if not added:
                return JoinRequestResponse(event_id=event_id, user_id=user_id, status="already_requested")
            user_name = self._display_name(user_data)
            workflow.step(
                "notify owner",
                lambda: self.notifications.create(
                    recipient_id=event["user_id"],
                    type="join_request",
                    event_id=event_id,
                    event_title=event["title"],
                    message=f"{user_name} requested to join your event: {event['title']}",
                    status="pending",
                    user_id=user_id,
                    user_name=user_name,
                ),
            )
        except Exception as e:
            raise backend_error(e)
        logger.info(f"User {user_id} requested to join event {event_id}")
        return JoinRequestResponse(event_id=event_id, user_id=user_id, status="requested")

    def _settle_requests(self, event_id: str, user_id: str, decision: str) -> List[str]:
        """Close the pending join_request notifications about user_id, whichever organizer holds them"""
        request_ids = [n["id"] for n in self.notifications.find_requests_for(event_id, user_id)]
        self.notifications.set_status(request_ids, decision, read=True)
        return request_ids

    def _decide(self, event: Dict[str, Any], user_id: str, approve: bool) -> EventResponse:
        decision = "approved" if approve else "denied"
        event_id = event["id"]

        def settle(row: dict) -> Optional[dict]:
            pending = row.get("pending_invites") or []
            if user_id not in pending:
                raise HTTPException(status_code=409, detail="There is no pending request from this user")
            changes = {"pending_invites": without_item(pending, user_id)}
            if approve:
                changes["invited_users"] = with_item(row.get("invited_users"), user_id)
            return changes

        workflow = Workflow(f"{decision} join request")
        try:
            updated = workflow.step(
                "update event membership",
                lambda: optimistic_update(self.supabase, "events", event_id, settle, not_found="Event not found"),
                lambda _: self._set_membership(event_id, user_id, pending=True, invited=False),
            )
            workflow.step(
                "settle join request notifications",
                lambda: self._settle_requests(event_id, user_id, decision),
                lambda request_ids: self.notifications.set_status(request_ids, "pending", read=False),
            )
            if approve:
                workflow.step(
                    "add to event chat",
                    lambda: self.chats.set_member(event_id, user_id, True),
                    lambda changed: changed and self.chats.set_member(event_id, user_id, False),
                )
                message = f'Your request to join "{event["title"]}" has been approved!'
            else:
                message = f'Your request to join "{event["title"]}" has been denied.'
            workflow.step(
                "notify requester",
                lambda: self.notifications.create(
                    recipient_id=user_id,
                    type="join_response",
                    event_id=event_id,
                    event_title=event["title"],
                    message=message,
                    status=decision,
                ),
            )
        except Exception as e:
            raise backend_error(e)
        logger.info(f"Join request of {user_id} for event {event_id} {decision}")
        return EventResponse(**updated)

    def approve(self, event: Dict[str, Any], user_id: str) -> EventResponse:
        """Move user_id from pending_invites to invited_users"""
        return self._decide(event, user_id, approve=True)

    def deny(self, event: Dict[str, Any], user_id: str) -> EventResponse:
        """Drop user_id from pending_invites"""
        return self._decide(event, user_id, approve=False)

    def list_pending(self, event: Dict[str, Any]) -> List[UserSummary]:
        return self.users.get_summaries(event.get("pending_invites") or [])

    def join_by_link(self, invite_link: str, user_data: dict) -> JoinRequestResponse:
        """Public events are joined directly, private ones get a join request"""
        event = self.events.find_by_invite_link(invite_link)
        user_id = user_data["id"]
        if is_member(event, user_id):
            return JoinRequestResponse(event_id=event["id"], user_id=user_id, status="already_member")
        if event.get("visibility") == "public":
            return self._join_public(event, user_id)
        return self.request_invite(event["id"], user_data)

    def _join_public(self, event: Dict[str, Any], user_id: str) -> JoinRequestResponse:
        workflow = Workflow("join public event")
        try:
            workflow.step(
                "add to invited users",
                lambda: self._set_membership(event["id"], user_id, pending=False, invited=True),
                lambda _: self._set_membership(event["id"], user_id, pending=False, invited=False),
            )
            workflow.step("add to event chat", lambda: self.chats.set_member(event["id"], user_id, True))
        except Exception as e:
            raise backend_error(e)
        logger.info(f"User {user_id} joined public event {event['id']}")
        return JoinRequestResponse(event_id=event["id"], user_id=user_id, status="joined")
