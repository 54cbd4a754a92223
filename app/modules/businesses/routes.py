from fastapi import APIRouter, Depends, UploadFile, File
from app.database.supabase_client import get_supabase
from app.modules.businesses.schemas import (
    BusinessCreate, BusinessUpdate, BusinessResponse, BusinessCategory,
    ProductCreate, HasBusinessResponse
)
from app.modules.businesses.service import BusinessService
from app.modules.events.schemas import ServiceType
from app.modules.media.service import MediaService
from app.modules.notifications.schemas import NotificationResponse
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/businesses", tags=["businesses"])


def get_business_service(supabase: Client = Depends(get_supabase)) -> BusinessService:
    return BusinessService(supabase)


def get_media_service(supabase: Client = Depends(get_supabase)) -> MediaService:
    return MediaService(supabase)


@router.get("", response_model=List[BusinessResponse])
async def list_businesses(
    category: Optional[BusinessCategory] = None,
    service_type: Optional[ServiceType] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    service: BusinessService = Depends(get_business_service)
):
    """Browse service providers"""
    return service.list_businesses(
        category=category, service=service_type, search=search, limit=limit, offset=offset
    )


@router.post("", response_model=BusinessResponse, status_code=201)
async def create_business(
    business_data: BusinessCreate,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    """Register a business owned by the caller"""
    return service.create_business(user_data["id"], business_data)


@router.get("/mine", response_model=List[BusinessResponse])
async def list_my_businesses(
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    return service.list_owned(user_data["id"])


@router.get("/mine/exists", response_model=HasBusinessResponse)
async def has_business(
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    """Whether the caller is a service provider"""
    return HasBusinessResponse(has_business=service.has_business(user_data["id"]))


@router.get("/mine/notifications", response_model=List[NotificationResponse])
async def provider_notifications(
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    """Bookings of the caller's businesses by event organizers"""
    return service.provider_notifications(user_data["id"], limit=limit, offset=offset)


@router.get("/{business_id}", response_model=BusinessResponse)
async def get_business(
    business_id: str,
    service: BusinessService = Depends(get_business_service)
):
    return service.get_business(business_id)


@router.put("/{business_id}", response_model=BusinessResponse)
async def update_business(
    business_id: str,
    business_data: BusinessUpdate,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    """Update a business (owner only)"""
    business = service.check_owner(business_id, user_data["id"])
    return service.update_business(business, business_data)


@router.delete("/{business_id}", status_code=204)
async def delete_business(
    business_id: str,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    """Delete a business (owner only)"""
    business = service.check_owner(business_id, user_data["id"])
    service.delete_business(business)


@router.post("/{business_id}/image", response_model=BusinessResponse)
async def upload_business_image(
    business_id: str,
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
    media: MediaService = Depends(get_media_service)
):
    """Upload the business photo (owner only)"""
    business = service.check_owner(business_id, user_data["id"])
    stored = await media.upload(file, f"businesses/{business_id}")
    return service.set_image(business, stored.url)


@router.post("/{business_id}/products", response_model=BusinessResponse, status_code=201)
async def add_product(
    business_id: str,
    product: ProductCreate,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    business = service.check_owner(business_id, user_data["id"])
    return service.add_product(business, product)


@router.put("/{business_id}/products/{product_id}", response_model=BusinessResponse)
async def update_product(
    business_id: str,
    product_id: str,
    product: ProductCreate,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    business = service.check_owner(business_id, user_data["id"])
    return service.update_product(business, product_id, product)


@router.delete("/{business_id}/products/{product_id}", response_model=BusinessResponse)
async def remove_product(
    business_id: str,
    product_id: str,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    business = service.check_owner(business_id, user_data["id"])
    return service.remove_product(business, product_id)
