from supabase import Client
from app.modules.users.schemas import UserUpdate, UserResponse, UserSummary, FollowResponse
from app.core.concurrency import optimistic_update, with_item, without_item
from app.core.errors import backend_error
from app.core.workflow import Workflow
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return UserResponse(**result.data)
        except Exception as e:
            raise backend_error(e)

    def get_profile(self, user_id: str) -> Optional[dict]:
        """Raw profile row, None when the id dangles"""
        result = self.supabase.table("user_profiles")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data

    def get_summaries(self, user_ids: List[str]) -> List[UserSummary]:
        """Display names for a list of ids, in the same order. Unknown ids fall back to the id itself."""
        if not user_ids:
            return []
        try:
            result = self.supabase.table("user_profiles")\
                .select("id, display_name, photo_url")\
                .in_("id", list(user_ids))\
                .execute()
            found: Dict[str, dict] = {row["id"]: row for row in (result.data or [])}
            summaries = []
            for user_id in user_ids:
                row = found.get(user_id)
                if row is None:
                    summaries.append(UserSummary(id=user_id, display_name=user_id))
                else:
                    summaries.append(UserSummary(
                        id=user_id,
                        display_name=row.get("display_name") or user_id,
                        photo_url=row.get("photo_url")
                    ))
            return summaries
        except Exception as e:
            raise backend_error(e)

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update user profile"""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if user_data.display_name is not None:
                update_data["display_name"] = user_data.display_name
            if user_data.photo_url is not None:
                update_data["photo_url"] = user_data.photo_url
            if user_data.bio is not None:
                update_data["bio"] = user_data.bio
            if user_data.location is not None:
                update_data["location"] = user_data.location

            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return UserResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)

    def list_followers(self, user_id: str) -> List[UserSummary]:
        profile = self.get_user_by_id(user_id)
        return self.get_summaries(profile.followers)

    def list_following(self, user_id: str) -> List[UserSummary]:
        profile = self.get_user_by_id(user_id)
        return self.get_summaries(profile.following)

    def _set_link(self, user_id: str, field: str, other_id: str, present: bool) -> bool:
        """Add or remove other_id in the profile's array field. Returns whether anything changed."""
        changed = False

        def mutate(row: dict) -> Optional[dict]:
            nonlocal changed
            current = row.get(field) or []
            changed = present != (other_id in current)
            if not changed:
                return None
            updated = with_item(current, other_id) if present else without_item(current, other_id)
            return {field: updated}

        optimistic_update(self.supabase, "user_profiles", user_id, mutate, not_found="User not found")
        return changed

    def set_following(self, user_id: str, target_id: str, follow: bool) -> FollowResponse:
        """Follow or unfollow target_id. Both profiles are updated; the first write is undone if the second fails."""
        if user_id == target_id:
            raise HTTPException(status_code=400, detail="You cannot follow yourself")
        workflow = Workflow("follow" if follow else "unfollow")
        try:
            workflow.step(
                "update follower list of target",
                lambda: self._set_link(target_id, "followers", user_id, follow),
                lambda changed: changed and self._set_link(target_id, "followers", user_id, not follow),
            )
            workflow.step(
                "update following list of user",
                lambda: self._set_link(user_id, "following", target_id, follow),
            )
        except Exception as e:
            raise backend_error(e)
        target = self.get_user_by_id(target_id)
        logger.info(f"User {user_id} {'followed' if follow else 'unfollowed'} {target_id}")
        return FollowResponse(
            user_id=user_id,
            target_id=target_id,
            following=follow,
            followers_count=len(target.followers)
        )
