from fastapi import APIRouter, Depends, UploadFile, File, Form
from app.database.supabase_client import get_supabase
from app.modules.posts.schemas import PostResponse, CommentCreate, LikeResponse, FeedPage, FeedSort
from app.modules.posts.service import PostService
from app.modules.events.schemas import Visibility
from app.core.dependencies import get_current_user, get_optional_user, check_event_member
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(tags=["posts"])


def get_post_service(supabase: Client = Depends(get_supabase)) -> PostService:
    return PostService(supabase)


@router.post("/events/{event_id}/posts", response_model=PostResponse, status_code=201)
async def create_post(
    event_id: str,
    file: UploadFile = File(...),
    visibility: Visibility = Form("public"),
    user_data: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    """Share a photo or video on an event"""
    return await service.create_post(event_id, file, visibility, user_data["id"])


@router.get("/events/{event_id}/posts", response_model=List[PostResponse])
async def list_event_posts(
    event_id: str,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    supabase: Client = Depends(get_supabase)
):
    """Posts of an event (organizers and invited users only)"""
    event = check_event_member(event_id, user_data, supabase)
    return service.list_event_posts(event, limit=limit, offset=offset)


@router.get("/feed", response_model=FeedPage)
async def feed(
    sort: FeedSort = "recent",
    cursor: Optional[str] = None,
    limit: int = 20,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service)
):
    """Paged feed; pass next_cursor back with the same sort to continue"""
    return service.feed(user_data["id"] if user_data else None, sort=sort, cursor=cursor, limit=limit)


@router.get("/posts/by-user/{user_id}", response_model=List[PostResponse])
async def list_user_posts(
    user_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service)
):
    return service.list_user_posts(user_id, user_data["id"] if user_data else None)


@router.post("/posts/{post_id}/like", response_model=LikeResponse)
async def toggle_like(
    post_id: str,
    user_data: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    """Like a post; liking it again removes the like"""
    return service.toggle_like(post_id, user_data["id"])


@router.post("/posts/{post_id}/comments", response_model=PostResponse, status_code=201)
async def add_comment(
    post_id: str,
    comment: CommentCreate,
    user_data: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.add_comment(post_id, user_data["id"], comment)


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    user_data: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    """Delete a post (author or event organizer)"""
    service.delete_post(post_id, user_data["id"])
