"""Pydantic schemas for product modification requests."""
from datetime import datetime
from enum import Enum

from pydantic import PositiveInt, field_validator

from bazaar.schemas.base import ApiModel


MIN_REQUEST_DETAILS_LENGTH = 10


class ModificationRequestStatus(str, Enum):
    """Seller decision on a modification request."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ModificationRequest(ApiModel):
    """A buyer's ask for a seller to customize a product."""

    id: int
    product_id: int
    buyer_id: int
    seller_id: int
    request_details: str
    status: str = ModificationRequestStatus.PENDING.value
    seller_response: str | None = None
    product_title: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ModificationRequestCreate(ApiModel):
    """Schema for submitting a modification request."""

    product_id: PositiveInt
    seller_id: PositiveInt
    request_details: str

    @field_validator("request_details")
    @classmethod
    def check_details_length(cls, v: str) -> str:
        """Strip surrounding whitespace and enforce the minimum length."""
        v = v.strip()
        if len(v) < MIN_REQUEST_DETAILS_LENGTH:
            raise ValueError(
                f"Request details must be at least {MIN_REQUEST_DETAILS_LENGTH} characters.",
            )
        return v


class SellerResponse(ApiModel):
    """Seller's answer to a modification request."""

    status: ModificationRequestStatus
    seller_response: str = ""
