"""
Pydantic Schemas for Request/Response Validation

Request bodies for the admin and guest APIs. Update schemas are partial:
only fields present in the request body are applied, everything else
keeps its stored value.

Author: Your Name
Version: 1.0.0
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Any
from datetime import datetime
from decimal import Decimal
from enum import Enum
import re


# =============================================================================
# ENUMS
# =============================================================================

class UserRoleEnum(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


INDIAN_MOBILE_RE = re.compile(r'^\+91[6-9]\d{9}$')


# =============================================================================
# RESTAURANT SCHEMAS
# =============================================================================

class RestaurantCreate(BaseModel):
    """Request schema for creating a restaurant."""
    name: str = Field(..., min_length=1, max_length=255, examples=["Spice Garden"])
    slug: str = Field(..., min_length=1, max_length=255, examples=["spice-garden"])
    logo_url: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    wifi_name: Optional[str] = Field(None, max_length=100)
    wifi_password: Optional[str] = Field(None, max_length=100)
    custom_sections: Optional[Any] = None

    @field_validator('name', 'slug')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Name and slug are required')
        return v.strip()


class RestaurantUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    wifi_name: Optional[str] = Field(None, max_length=100)
    wifi_password: Optional[str] = Field(None, max_length=100)
    custom_sections: Optional[Any] = None


# =============================================================================
# CATEGORY SCHEMAS
# =============================================================================

class CategoryCreate(BaseModel):
    restaurant_id: int = Field(..., examples=[1])
    name: str = Field(..., min_length=1, max_length=100, examples=["Starters"])
    description: Optional[str] = None
    image_url: Optional[str] = None
    color: str = Field(default="#667eea", max_length=7)
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    color: Optional[str] = Field(None, max_length=7)
    sort_order: Optional[int] = None


# =============================================================================
# MENU ITEM SCHEMAS
# =============================================================================

class MenuItemCreate(BaseModel):
    """Request schema for adding a single menu item."""
    restaurant_id: int = Field(..., examples=[1])
    category: str = Field(..., min_length=1, max_length=100, examples=["Starters"])
    category_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255, examples=["Paneer Tikka"])
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, examples=[249.00])
    image_url: Optional[str] = Field(None, max_length=500)
    availability_time: Optional[str] = Field(None, max_length=50)
    is_available: bool = True
    sort_order: int = 0
    is_veg: Optional[bool] = None


class MenuItemUpdate(BaseModel):
    """
    Partial update of a menu item.

    ``preparation_time`` is stored in the ``availability_time`` column.
    """
    category: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    is_available: Optional[bool] = None
    preparation_time: Optional[str] = Field(None, max_length=50)
    is_veg: Optional[bool] = None


# =============================================================================
# FEEDBACK SCHEMAS
# =============================================================================

class FeedbackCreate(BaseModel):
    """Guest feedback submitted from the public menu page."""
    restaurant_id: int
    phone_number: Optional[str] = Field(None, examples=["+919876543210"])
    food_quality: int = Field(..., ge=1, le=5)
    service: int = Field(..., ge=1, le=5)
    ambiance: int = Field(..., ge=1, le=5)
    pricing: int = Field(..., ge=1, le=5)
    comments: Optional[str] = Field(None, max_length=150)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        trimmed = v.strip()
        # The form pre-fills the country code
        if trimmed in ("", "+91"):
            return None
        if not INDIAN_MOBILE_RE.match(trimmed):
            raise ValueError(
                'Please enter a valid Indian mobile number '
                '(+91 followed by 10 digits starting with 6-9)'
            )
        return trimmed

    @field_validator('comments')
    @classmethod
    def empty_comments_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


# =============================================================================
# USER SCHEMAS
# =============================================================================

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, examples=["manager1"])
    role: UserRoleEnum = UserRoleEnum.ADMIN
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not re.match(r'^[\w\.+-]+@[\w\.-]+\.\w+$', v):
            raise ValueError('Invalid email format')
        return v


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    role: Optional[UserRoleEnum] = None
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str
    error: Optional[str] = None
    errors: Optional[list[dict[str, Any]]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    environment: str
    uptime_seconds: float
    timestamp: datetime
