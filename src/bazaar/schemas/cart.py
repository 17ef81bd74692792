"""Pydantic schemas for cart items."""
from decimal import Decimal

from pydantic import PositiveInt

from bazaar.schemas.base import ApiModel


class CartProduct(ApiModel):
    """Product projection embedded in a cart item."""

    id: int
    title: str
    price: Decimal
    quantity_available: int = 0
    images: list[str] = []


class CartItem(ApiModel):
    """A line in the current user's cart."""

    id: int
    user_id: int
    product_id: int
    quantity: int
    product: CartProduct | None = None

    @property
    def subtotal(self) -> Decimal:
        """Line price, zero when the product projection is missing."""
        if self.product is None:
            return Decimal("0")
        return self.product.price * self.quantity


class CartItemCreate(ApiModel):
    """Schema for adding a product to the cart."""

    product_id: PositiveInt
    quantity: PositiveInt = 1
