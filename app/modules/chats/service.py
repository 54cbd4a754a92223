from supabase import Client
from app.modules.chats.schemas import ChatResponse, MessageCreate, MessageResponse
from app.core.concurrency import optimistic_update, with_item, without_item
from app.core.errors import backend_error
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_group_chat(self, event_id: str, title: str, admins: List[str], members: List[str]) -> ChatResponse:
        """Create the event's group chat; admins are always members"""
        all_members: List[str] = []
        for user_id in list(admins) + list(members):
            all_members = with_item(all_members, user_id)
        result = self.supabase.table("chats").insert({
            "event_id": event_id,
            "title": title,
            "admins": list(dict.fromkeys(admins)),
            "members": all_members,
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create group chat")
        logger.info(f"Created group chat for event {event_id} with {len(all_members)} member(s)")
        return ChatResponse(**result.data[0])

    def delete_chat(self, chat_id: str) -> None:
        self.supabase.table("chat_messages").delete().eq("chat_id", chat_id).execute()
        self.supabase.table("chats").delete().eq("id", chat_id).execute()

    def get_event_chat(self, event_id: str) -> Optional[dict]:
        result = self.supabase.table("chats")\
            .select("*")\
            .eq("event_id", event_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def set_member(self, event_id: str, user_id: str, present: bool) -> bool:
        """Add or remove a member of the event chat. Returns whether anything changed."""
        chat = self.get_event_chat(event_id)
        if chat is None:
            return False
        changed = False

        def mutate(row: dict) -> Optional[dict]:
            nonlocal changed
            members = row.get("members") or []
            changed = present != (user_id in members)
            if not changed:
                return None
            return {"members": with_item(members, user_id) if present else without_item(members, user_id)}

        optimistic_update(self.supabase, "chats", chat["id"], mutate, not_found="Chat not found")
        return changed

    def set_admin(self, event_id: str, user_id: str, present: bool, keep_member: bool = False) -> bool:
        """Grant or revoke admin rights in the event chat.

        Admins are always members. A revoked admin stays a member only when
        keep_member is set, e.g. because they are still an invited guest.
        Returns whether anything changed.
        """
        chat = self.get_event_chat(event_id)
        if chat is None:
            return False
        changed = False

        def mutate(row: dict) -> Optional[dict]:
            nonlocal changed
            admins = row.get("admins") or []
            members = row.get("members") or []
            if present:
                changes = {"admins": with_item(admins, user_id), "members": with_item(members, user_id)}
            else:
                changes = {
                    "admins": without_item(admins, user_id),
                    "members": members if keep_member else without_item(members, user_id),
                }
            changed = changes["admins"] != admins or changes["members"] != members
            return changes if changed else None

        optimistic_update(self.supabase, "chats", chat["id"], mutate, not_found="Chat not found")
        return changed

    def list_chats(self, user_id: str) -> List[ChatResponse]:
        try:
            result = self.supabase.table("chats")\
                .select("*")\
                .contains("members", [user_id])\
                .order("created_at", desc=True)\
                .execute()
            return [ChatResponse(**c) for c in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def _get_chat_for_member(self, chat_id: str, user_id: str) -> dict:
        result = self.supabase.table("chats")\
            .select("*")\
            .eq("id", chat_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Chat not found")
        if user_id not in (result.data.get("members") or []):
            raise HTTPException(status_code=403, detail="You must be a member of this chat")
        return result.data

    def list_messages(self, chat_id: str, user_id: str, limit: int = 100, offset: int = 0) -> List[MessageResponse]:
        """Messages in chronological order"""
        try:
            self._get_chat_for_member(chat_id, user_id)
            result = self.supabase.table("chat_messages")\
                .select("*")\
                .eq("chat_id", chat_id)\
                .order("created_at")\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [MessageResponse(**m) for m in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def post_message(self, chat_id: str, user_id: str, message: MessageCreate) -> MessageResponse:
        try:
            self._get_chat_for_member(chat_id, user_id)
            result = self.supabase.table("chat_messages").insert({
                "chat_id": chat_id,
                "user_id": user_id,
                "text": message.text,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")
            return MessageResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)
