from supabase import Client
from fastapi import HTTPException, UploadFile
from app.modules.posts.schemas import PostResponse, CommentCreate, LikeResponse, FeedPage
from app.modules.posts.pagination import encode_cursor, decode_cursor, merge_pages
from app.modules.media.service import MediaService
from app.core.concurrency import optimistic_update, with_item, without_item
from app.core.dependencies import get_event_or_404, is_member, is_organizer
from app.core.errors import backend_error
from app.core.workflow import Workflow
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


class PostService:
    def __init__(self, supabase: Client, media: Optional[MediaService] = None):
        self.supabase = supabase
        self.media = media or MediaService(supabase)

    def _member_event_ids(self, user_id: Optional[str]) -> List[str]:
        if not user_id:
            return []
        result = self.supabase.table("events")\
            .select("id")\
            .or_(f"organizers.cs.{{{user_id}}},invited_users.cs.{{{user_id}}}")\
            .execute()
        return [e["id"] for e in (result.data or [])]

    def _visible(self, query, viewer_id: Optional[str]):
        """Public posts plus every post of the events the viewer belongs to"""
        event_ids = self._member_event_ids(viewer_id)
        if event_ids:
            return query.or_(f"visibility.eq.public,event_id.in.({','.join(event_ids)})")
        return query.eq("visibility", "public")

    def _get_post(self, post_id: str) -> Dict[str, Any]:
        result = self.supabase.table("posts")\
            .select("*")\
            .eq("id", post_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Post not found")
        return result.data

    def _get_visible_post(self, post_id: str, user_id: str) -> Dict[str, Any]:
        post = self._get_post(post_id)
        if post.get("visibility") != "public":
            event = get_event_or_404(post["event_id"], self.supabase)
            if not is_member(event, user_id):
                raise HTTPException(status_code=404, detail="Post not found")
        return post

    async def create_post(
        self,
        event_id: str,
        file: UploadFile,
        visibility: str,
        user_id: str
    ) -> PostResponse:
        """Share a photo or video on an event (organizers and invited users)"""
        event = get_event_or_404(event_id, self.supabase)
        if not is_member(event, user_id):
            raise HTTPException(status_code=403, detail="Only organizers and invited guests can post on this event")
        if event.get("visibility") == "private":
            visibility = "private"

        stored = await self.media.upload(file, f"posts/{event_id}", allow_video=True)
        workflow = Workflow("create post")
        workflow.step("store media", lambda: stored, lambda media: self.media.delete(media.key))

        def insert() -> Dict[str, Any]:
            result = self.supabase.table("posts").insert({
                "event_id": event_id,
                "user_id": user_id,
                "media_url": stored.url,
                "media_key": stored.key,
                "type": stored.kind,
                "visibility": visibility,
                "likes": [],
                "like_count": 0,
                "comments": [],
                "version": 0,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")
            return result.data[0]

        try:
            post = workflow.step("insert post", insert)
        except Exception as e:
            raise backend_error(e)
        logger.info(f"User {user_id} posted {stored.kind} {post['id']} on event {event_id}")
        return PostResponse(**post)

    def toggle_like(self, post_id: str, user_id: str) -> LikeResponse:
        """Like the post, or take the like back when it is already there"""
        try:
            self._get_visible_post(post_id, user_id)
            liked = False

            def mutate(row: dict) -> dict:
                nonlocal liked
                likes = row.get("likes") or []
                liked = user_id not in likes
                likes = with_item(likes, user_id) if liked else without_item(likes, user_id)
                return {"likes": likes, "like_count": len(likes)}

            post = optimistic_update(self.supabase, "posts", post_id, mutate, not_found="Post not found")
            return LikeResponse(post_id=post_id, liked=liked, like_count=post.get("like_count", 0))
        except Exception as e:
            raise backend_error(e)

    def add_comment(self, post_id: str, user_id: str, comment: CommentCreate) -> PostResponse:
        try:
            self._get_visible_post(post_id, user_id)
            entry = {
                "user_id": user_id,
                "text": comment.text,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }

            def mutate(row: dict) -> dict:
                return {"comments": list(row.get("comments") or []) + [entry]}

            return PostResponse(**optimistic_update(self.supabase, "posts", post_id, mutate, not_found="Post not found"))
        except Exception as e:
            raise backend_error(e)

    def delete_post(self, post_id: str, user_id: str) -> bool:
        """Author or event organizer only"""
        try:
            post = self._get_post(post_id)
            if post["user_id"] != user_id:
                event = get_event_or_404(post["event_id"], self.supabase)
                if not is_organizer(event, user_id):
                    raise HTTPException(status_code=403, detail="Only the author or an organizer can delete this post")
            self.supabase.table("posts").delete().eq("id", post_id).execute()
        except Exception as e:
            raise backend_error(e)
        if post.get("media_key") and not self.media.delete(post["media_key"]):
            logger.warning(f"Media {post['media_key']} of deleted post {post_id} was left in storage")
        return True

    def list_event_posts(self, event: Dict[str, Any], limit: int = 50, offset: int = 0) -> List[PostResponse]:
        try:
            result = self.supabase.table("posts")\
                .select("*")\
                .eq("event_id", event["id"])\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [PostResponse(**p) for p in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def list_user_posts(self, author_id: str, viewer_id: Optional[str] = None, limit: int = 50) -> List[PostResponse]:
        """Posts by author_id that the viewer may see"""
        try:
            query = self.supabase.table("posts").select("*").eq("user_id", author_id)
            result = self._visible(query, viewer_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            return [PostResponse(**p) for p in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def _recent_page(self, viewer_id: Optional[str], cursor: Optional[dict], limit: int) -> FeedPage:
        seen = set(cursor.get("seen") or []) if cursor else set()
        query = self._visible(self.supabase.table("posts").select("*"), viewer_id)
        if cursor:
            query = query.lte("created_at", cursor["created_at"])
        result = query.order("created_at", desc=True)\
            .limit(limit + len(seen) + 1)\
            .execute()
        rows = [p for p in (result.data or []) if p["id"] not in seen]
        page, has_more = rows[:limit], len(rows) > limit
        if not has_more or not page:
            return FeedPage(items=merge_pages([], [PostResponse(**p) for p in page]))

        boundary = page[-1]["created_at"]
        boundary_ids = [p["id"] for p in page if p["created_at"] == boundary]
        if cursor and cursor["created_at"] == boundary:
            boundary_ids = list(seen) + boundary_ids
        return FeedPage(
            items=merge_pages([], [PostResponse(**p) for p in page]),
            next_cursor=encode_cursor("recent", created_at=boundary, seen=boundary_ids)
        )

    def _popular_page(self, viewer_id: Optional[str], cursor: Optional[dict], limit: int) -> FeedPage:
        offset = int(cursor.get("offset", 0)) if cursor else 0
        query = self._visible(self.supabase.table("posts").select("*"), viewer_id)
        result = query.order("like_count", desc=True)\
            .order("created_at", desc=True)\
            .range(offset, offset + limit)\
            .execute()
        rows = result.data or []
        page, has_more = rows[:limit], len(rows) > limit
        return FeedPage(
            items=merge_pages([], [PostResponse(**p) for p in page]),
            next_cursor=encode_cursor("popular", offset=offset + limit) if has_more else None
        )

    def feed(self, viewer_id: Optional[str], sort: str = "recent", cursor: Optional[str] = None, limit: int = 20) -> FeedPage:
        """One page of the feed. Private posts only show up for members of their event."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        position = decode_cursor(cursor, sort)
        try:
            if sort == "popular":
                return self._popular_page(viewer_id, position, limit)
            return self._recent_page(viewer_id, position, limit)
        except Exception as e:
            raise backend_error(e)
