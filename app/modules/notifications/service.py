from supabase import Client
from app.modules.notifications.schemas import NotificationResponse
from app.core.errors import backend_error
from typing import Iterable, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create(
        self,
        recipient_id: str,
        type: str,
        event_id: str,
        event_title: str,
        message: str,
        status: str,
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
        business_id: Optional[str] = None,
    ) -> NotificationResponse:
        """Write one notification into the recipient's inbox"""
        result = self.supabase.table("notifications").insert({
            "recipient_id": recipient_id,
            "type": type,
            "event_id": event_id,
            "event_title": event_title,
            "user_id": user_id,
            "user_name": user_name,
            "business_id": business_id,
            "message": message,
            "status": status,
            "read": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create notification")
        return NotificationResponse(**result.data[0])

    def notify_event_update(
        self,
        recipients: Iterable[str],
        event_id: str,
        event_title: str,
        message: str,
        actor_id: Optional[str] = None,
    ) -> List[NotificationResponse]:
        """Fan out an event_update notification, skipping the actor and duplicate ids"""
        rows = []
        seen = set()
        now = datetime.now(timezone.utc).isoformat()
        for recipient_id in recipients:
            if not recipient_id or recipient_id == actor_id or recipient_id in seen:
                continue
            seen.add(recipient_id)
            rows.append({
                "recipient_id": recipient_id,
                "type": "event_update",
                "event_id": event_id,
                "event_title": event_title,
                "user_id": actor_id,
                "message": message,
                "status": "unread",
                "read": False,
                "created_at": now,
            })
        if not rows:
            return []
        result = self.supabase.table("notifications").insert(rows).execute()
        logger.info(f"Sent event_update for event {event_id} to {len(rows)} recipient(s)")
        return [NotificationResponse(**n) for n in (result.data or [])]

    def delete_many(self, notification_ids: List[str]) -> None:
        if notification_ids:
            self.supabase.table("notifications")\
                .delete()\
                .in_("id", notification_ids)\
                .execute()

    def get_notification(self, notification_id: str, recipient_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("id", notification_id)\
                .eq("recipient_id", recipient_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            return NotificationResponse(**result.data)
        except Exception as e:
            raise backend_error(e)

    def list_notifications(
        self,
        recipient_id: str,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[NotificationResponse]:
        """Inbox, newest first"""
        try:
            query = self.supabase.table("notifications")\
                .select("*")\
                .eq("recipient_id", recipient_id)
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [NotificationResponse(**n) for n in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def unread_count(self, recipient_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .select("id")\
                .eq("recipient_id", recipient_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise backend_error(e)

    def find_requests_for(self, event_id: str, requester_id: str, status: str = "pending") -> List[dict]:
        """join_request notifications about one requester, in any organizer's inbox"""
        result = self.supabase.table("notifications")\
            .select("*")\
            .eq("type", "join_request")\
            .eq("event_id", event_id)\
            .eq("user_id", requester_id)\
            .eq("status", status)\
            .execute()
        return result.data or []

    def set_status(self, notification_ids: List[str], status: str, read: Optional[bool] = None) -> None:
        if not notification_ids:
            return
        update_data = {"status": status}
        if read is not None:
            update_data["read"] = read
        self.supabase.table("notifications")\
            .update(update_data)\
            .in_("id", notification_ids)\
            .execute()

    def mark_read(self, notification_id: str, recipient_id: str) -> NotificationResponse:
        """Flag a notification as read; unread event updates move to status read"""
        notification = self.get_notification(notification_id, recipient_id)
        update_data = {"read": True}
        if notification.status == "unread":
            update_data["status"] = "read"
        try:
            result = self.supabase.table("notifications")\
                .update(update_data)\
                .eq("id", notification_id)\
                .eq("recipient_id", recipient_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            return NotificationResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)

    def mark_all_read(self, recipient_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("recipient_id", recipient_id)\
                .eq("read", False)\
                .execute()
            self.supabase.table("notifications")\
                .update({"status": "read"})\
                .eq("recipient_id", recipient_id)\
                .eq("status", "unread")\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise backend_error(e)
