"""Request/response schemas shared by the API and the client."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .grocery import MONTHS, Unit


# ==================== Auth ====================

class UserResponse(BaseModel):
    id: str
    email: str
    name: str

    class Config:
        from_attributes = True


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(min_length=1)


# ==================== Lists & items ====================

class ItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    quantity: float = Field(default=1.0, gt=0)
    unit: Unit = Unit.KG
    estimated_price: Optional[float] = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("item name must not be blank")
        return value

    @field_validator("unit", mode="before")
    @classmethod
    def lower_unit(cls, value):
        return value.lower().strip() if isinstance(value, str) else value


class ItemUpdate(ItemCreate):
    """Full replacement of an item's editable fields."""


class ItemResponse(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    estimated_price: Optional[float] = None

    class Config:
        from_attributes = True


class _ListDetails(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    month: str
    year: int = Field(ge=2000, le=2100)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("month")
    @classmethod
    def known_month(cls, value: str) -> str:
        normalized = value.strip().capitalize()
        if normalized not in MONTHS:
            raise ValueError(f"unknown month: {value}")
        return normalized


class ListCreate(_ListDetails):
    items: List[ItemCreate] = Field(min_length=1)


class ListDetailsUpdate(_ListDetails):
    """Rename a list or move it to another month."""


class ListItemsReplace(BaseModel):
    """Replace the full item set of a list."""

    items: List[ItemCreate]


class ListResponse(BaseModel):
    id: str
    title: str
    month: str
    year: int
    created_at: datetime
    items: List[ItemResponse] = []
    total_estimated_price: float = 0.0

    class Config:
        from_attributes = True


class ItemMutationResponse(BaseModel):
    item: Optional[ItemResponse] = None
    total_estimated_price: float


class PreviousItem(BaseModel):
    name: str
    unit: str
    estimated_price: float


# ==================== Analytics ====================

class MonthlySpending(BaseModel):
    name: str
    month: str
    year: int
    value: float


class DashboardResponse(BaseModel):
    total_lists: int
    total_items: int
    total_spent: float
    average_per_list: float
    latest_list: Optional[ListResponse] = None
    recent_lists: List[ListResponse] = []
    monthly_spending: List[MonthlySpending] = []


# ==================== Functions ====================

class PriceRequest(BaseModel):
    item_name: str = Field(alias="itemName", min_length=1)
    quantity: float = Field(default=1.0, gt=0)
    unit: str = "kg"

    class Config:
        populate_by_name = True


class PriceResponse(BaseModel):
    price: float


class CatalogRequest(BaseModel):
    category: str = "all"


class CatalogItem(BaseModel):
    name_en: str
    name_bn: str = ""
    category: str
    estimated_price: float
    unit: str


class CatalogResponse(BaseModel):
    items: List[CatalogItem] = []


class ParsedItem(BaseModel):
    name: str
    quantity: float
    unit: str


class OCRResponse(BaseModel):
    success: bool
    extracted_text: str = Field(default="", alias="extractedText")
    engine: Optional[str] = None
    items: List[ParsedItem] = []
    error: Optional[str] = None

    class Config:
        populate_by_name = True
