"""Pydantic schemas for orders."""
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field, PositiveInt

from bazaar.schemas.base import ApiModel
from bazaar.schemas.product import Product


class OrderStatus(str, Enum):
    """Order lifecycle states known to the client."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(ApiModel):
    """One product line of an order."""

    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    product: Product | None = None


class Order(ApiModel):
    """
    An order as returned by /api/orders.

    `order_status` stays a plain string: the server owns the set of values and
    views fall back to a neutral treatment for anything unknown.
    """

    id: int
    buyer_id: int
    order_status: str = OrderStatus.PENDING.value
    total_amount: Decimal
    shipping_address: str | None = None
    payment_intent_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItem] = []


class OrderItemCreate(ApiModel):
    """One line of an order being placed."""

    product_id: PositiveInt
    quantity: PositiveInt
    unit_price: Decimal = Field(ge=0)


class OrderCreate(ApiModel):
    """Order header being placed; the buyer id is filled from the session."""

    total_amount: Decimal = Field(ge=0)
    shipping_address: str | None = None
    payment_intent_id: str | None = None
