"""Pydantic schemas for products and reviews."""
from datetime import datetime
from decimal import Decimal

from pydantic import Field, PositiveInt

from bazaar.schemas.base import ApiModel


class Product(ApiModel):
    """A listed product."""

    id: int
    title: str
    description: str | None = None
    price: Decimal
    images: list[str] = []
    category: str
    quantity_available: int = 0
    seller_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def in_stock(self) -> bool:
        """True if at least one unit can be bought."""
        return self.quantity_available > 0


class ProductCreate(ApiModel):
    """Schema for creating or replacing a listing."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    # Decimal keeps cents exact; serialized as a string on the wire
    price: Decimal = Field(gt=0, decimal_places=2)
    images: list[str] = Field(min_length=1)
    category: str = Field(min_length=1, max_length=100)
    quantity_available: int = Field(ge=0)
    seller_id: PositiveInt | None = None


class Review(ApiModel):
    """A buyer review of a product."""

    id: int
    product_id: int
    buyer_id: int
    rating: int
    comment: str | None = None
    created_at: datetime | None = None


class ReviewCreate(ApiModel):
    """Schema for posting a review."""

    rating: int = Field(ge=1, le=5)
    comment: str | None = None
