from fastapi import APIRouter, Depends, UploadFile, File
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import UserUpdate, UserResponse, UserSummary, FollowResponse
from app.modules.users.service import UserService
from app.modules.media.service import MediaService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_media_service(supabase: Client = Depends(get_supabase)) -> MediaService:
    return MediaService(supabase)


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Profile of the signed-in user"""
    return service.get_user_by_id(user_data["id"])


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    user_data_body: UserUpdate,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Update the signed-in user's profile"""
    return service.update_user(user_data["id"], user_data_body)


@router.post("/me/photo", response_model=UserResponse)
async def upload_my_photo(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    media: MediaService = Depends(get_media_service)
):
    """Upload a profile photo (JPEG, PNG or GIF, max 5MB)"""
    stored = await media.upload(file, f"profilePhotos/{user_data['id']}")
    return service.update_user(user_data["id"], UserUpdate(photo_url=stored.url))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Get user profile by ID"""
    return service.get_user_by_id(user_id)


@router.get("/{user_id}/followers", response_model=List[UserSummary])
async def list_followers(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Followers with display names"""
    return service.list_followers(user_id)


@router.get("/{user_id}/following", response_model=List[UserSummary])
async def list_following(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Users this user follows"""
    return service.list_following(user_id)


@router.post("/{user_id}/follow", response_model=FollowResponse)
async def follow_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Follow a user"""
    return service.set_following(user_data["id"], user_id, follow=True)


@router.delete("/{user_id}/follow", response_model=FollowResponse)
async def unfollow_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Unfollow a user"""
    return service.set_following(user_data["id"], user_id, follow=False)
