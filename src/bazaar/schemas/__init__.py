"""Pydantic schemas for marketplace resources."""
from bazaar.schemas.base import ApiModel
from bazaar.schemas.cart import CartItem, CartItemCreate, CartProduct
from bazaar.schemas.modification_request import (
    ModificationRequest,
    ModificationRequestCreate,
    ModificationRequestStatus,
    SellerResponse,
)
from bazaar.schemas.notification import Notification, NotificationType
from bazaar.schemas.order import Order, OrderCreate, OrderItem, OrderItemCreate, OrderStatus
from bazaar.schemas.product import Product, ProductCreate, Review, ReviewCreate
from bazaar.schemas.user import ProfileUpdate, RegisterRequest, Role, User

__all__ = [
    "ApiModel",
    "CartItem",
    "CartItemCreate",
    "CartProduct",
    "ModificationRequest",
    "ModificationRequestCreate",
    "ModificationRequestStatus",
    "Notification",
    "NotificationType",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderItemCreate",
    "OrderStatus",
    "ProfileUpdate",
    "Product",
    "ProductCreate",
    "RegisterRequest",
    "Review",
    "ReviewCreate",
    "Role",
    "SellerResponse",
    "User",
]
