from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime
from app.modules.events.schemas import ServiceType

BusinessCategory = Literal["Refreshments", "Catering/Food", "Venue Provider"]

# Service an event gets when it books a business without naming one
CATEGORY_SERVICE = {
    "Refreshments": "refreshments",
    "Catering/Food": "catering",
    "Venue Provider": "venue",
}


class Contact(BaseModel):
    phone_number: str = ""
    email: Optional[EmailStr] = None


class BusinessCreate(BaseModel):
    name: str
    category: BusinessCategory = "Venue Provider"
    services: List[ServiceType]
    description: str = ""
    contact: Contact
    location: str = ""
    image_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Business name is required")
        return value.strip()

    @field_validator("services")
    @classmethod
    def at_least_one_service(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("Select at least one service")
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def contact_given(self) -> "BusinessCreate":
        if not self.contact.phone_number.strip() and not self.contact.email:
            raise ValueError("Contact information is required")
        return self


class BusinessUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[BusinessCategory] = None
    services: Optional[List[ServiceType]] = None
    description: Optional[str] = None
    contact: Optional[Contact] = None
    location: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Business name is required")
        return value.strip() if value is not None else value

    @field_validator("services")
    @classmethod
    def at_least_one_service(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is not None and not value:
            raise ValueError("Select at least one service")
        return list(dict.fromkeys(value)) if value is not None else value


class ProductCreate(BaseModel):
    name: str
    description: str = ""
    image_url: Optional[str] = None
    in_stock: bool = True
    category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Product name is required")
        return value.strip()


class Product(ProductCreate):
    id: str


class BusinessResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    category: BusinessCategory = "Venue Provider"
    services: List[ServiceType] = []
    description: str = ""
    contact: Contact = Contact()
    location: str = ""
    image_url: Optional[str] = None
    products: List[Product] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HasBusinessResponse(BaseModel):
    has_business: bool
