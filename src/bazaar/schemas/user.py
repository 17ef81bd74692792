"""Pydantic schemas for users and authentication."""
from datetime import datetime
from enum import Enum

from pydantic import Field

from bazaar.schemas.base import ApiModel


class Role(str, Enum):
    """Marketplace role of an account."""

    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class User(ApiModel):
    """Identity returned by /api/auth/me and the login/register endpoints."""

    id: int
    name: str
    email: str
    role: Role
    username: str | None = None
    profile_image: str | None = None
    mobile_number: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    receive_promotions: bool | None = None
    # Seller specific
    business_name: str | None = None
    business_description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RegisterRequest(ApiModel):
    """Schema for creating an account."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=255)
    role: Role = Role.BUYER


class ProfileUpdate(ApiModel):
    """Partial profile update. Only fields explicitly set are sent."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    profile_image: str | None = None
    mobile_number: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    receive_promotions: bool | None = None
    business_name: str | None = None
    business_description: str | None = None
