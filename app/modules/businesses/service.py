from supabase import Client
from app.modules.businesses.schemas import (
    BusinessCreate, BusinessUpdate, BusinessResponse, ProductCreate, Product
)
from app.modules.notifications.schemas import NotificationResponse
from app.modules.events.service import sanitize_search
from app.core.concurrency import optimistic_update
from app.core.errors import backend_error
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)


class BusinessService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_business_row(self, business_id: str) -> Dict[str, Any]:
        """Raw business row, 404 when it does not exist"""
        try:
            result = self.supabase.table("businesses")\
                .select("*")\
                .eq("id", business_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise backend_error(e)
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Business not found")
        return result.data

    def get_business(self, business_id: str) -> BusinessResponse:
        return BusinessResponse(**self.get_business_row(business_id))

    def check_owner(self, business_id: str, user_id: str) -> Dict[str, Any]:
        business = self.get_business_row(business_id)
        if business["owner_id"] != user_id:
            raise HTTPException(status_code=403, detail="Only the business owner can do this")
        return business

    def list_businesses(
        self,
        category: Optional[str] = None,
        service: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[BusinessResponse]:
        """Directory of service providers, alphabetical"""
        try:
            query = self.supabase.table("businesses").select("*")
            if category:
                query = query.eq("category", category)
            if service:
                query = query.contains("services", [service])
            term = sanitize_search(search or "")
            if term:
                query = query.or_(f"name.ilike.%{term}%,location.ilike.%{term}%")
            result = query.order("name")\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [BusinessResponse(**b) for b in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def list_owned(self, owner_id: str) -> List[BusinessResponse]:
        try:
            result = self.supabase.table("businesses")\
                .select("*")\
                .eq("owner_id", owner_id)\
                .order("created_at", desc=True)\
                .execute()
            return [BusinessResponse(**b) for b in (result.data or [])]
        except Exception as e:
            raise backend_error(e)

    def has_business(self, owner_id: str) -> bool:
        try:
            result = self.supabase.table("businesses")\
                .select("id")\
                .eq("owner_id", owner_id)\
                .limit(1)\
                .execute()
            return bool(result.data)
        except Exception as e:
            raise backend_error(e)

    def create_business(self, owner_id: str, business_data: BusinessCreate) -> BusinessResponse:
        try:
            result = self.supabase.table("businesses").insert({
                **business_data.model_dump(mode="json"),
                "owner_id": owner_id,
                "products": [],
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create business")
            logger.info(f"Created business {result.data[0]['id']} for user {owner_id}")
            return BusinessResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)

    def update_business(self, business: Dict[str, Any], business_data: BusinessUpdate) -> BusinessResponse:
        update_data = business_data.model_dump(exclude_none=True, mode="json")
        if not update_data:
            return BusinessResponse(**business)
        try:
            result = self.supabase.table("businesses")\
                .update({**update_data, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", business["id"])\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Business not found")
            return BusinessResponse(**result.data[0])
        except Exception as e:
            raise backend_error(e)

    def delete_business(self, business: Dict[str, Any]) -> None:
        """Events that booked the business keep their copy of its name"""
        try:
            self.supabase.table("businesses")\
                .delete()\
                .eq("id", business["id"])\
                .execute()
            logger.info(f"Deleted business {business['id']}")
        except Exception as e:
            raise backend_error(e)

    def add_product(self, business: Dict[str, Any], product_data: ProductCreate) -> BusinessResponse:
        product = Product(id=str(uuid.uuid4()), **product_data.model_dump()).model_dump()

        def mutate(row: dict) -> dict:
            return {"products": list(row.get("products") or []) + [product]}

        try:
            return BusinessResponse(**optimistic_update(
                self.supabase, "businesses", business["id"], mutate, not_found="Business not found"
            ))
        except Exception as e:
            raise backend_error(e)

    def update_product(
        self, business: Dict[str, Any], product_id: str, product_data: ProductCreate
    ) -> BusinessResponse:
        def mutate(row: dict) -> dict:
            products = list(row.get("products") or [])
            for index, product in enumerate(products):
                if product.get("id") == product_id:
                    products[index] = {**product_data.model_dump(), "id": product_id}
                    return {"products": products}
            raise HTTPException(status_code=404, detail="Product not found")

        try:
            return BusinessResponse(**optimistic_update(
                self.supabase, "businesses", business["id"], mutate, not_found="Business not found"
            ))
        except Exception as e:
            raise backend_error(e)

    def remove_product(self, business: Dict[str, Any], product_id: str) -> BusinessResponse:
        def mutate(row: dict) -> dict:
            products = row.get("products") or []
            remaining = [p for p in products if p.get("id") != product_id]
            if len(remaining) == len(products):
                raise HTTPException(status_code=404, detail="Product not found")
            return {"products": remaining}

        try:
            return BusinessResponse(**optimistic_update(
                self.supabase, "businesses", business["id"], mutate, not_found="Business not found"
            ))
        except Exception as e:
            raise backend_error(e)

    def set_image(self, business: Dict[str, Any], image_url: str) -> BusinessResponse:
        return self.update_business(business, BusinessUpdate(image_url=image_url))

    def provider_notifications(self, owner_id: str, limit: int = 50, offset: int = 0) -> List[NotificationResponse]:
        """Service requests addressed to any business the user owns, newest first"""
        try:
            owned = self.supabase.table("businesses")\
                .select("id")\
                .eq("owner_id", owner_id)\
                .execute()
            business_ids = [b["id"] for b in (owned.data or [])]
            if not business_ids:
                return []
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("recipient_id", owner_id)\
                .in_("business_id", business_ids)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [NotificationResponse(**n) for n in (result.data or [])]
        except Exception as e:
            raise backend_error(e)
