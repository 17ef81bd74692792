"""Pydantic schemas for in-app notifications."""
from datetime import datetime
from enum import Enum
from typing import Any

from bazaar.schemas.base import ApiModel


class NotificationType(str, Enum):
    """Kinds of notification the backend emits."""

    ORDER_UPDATE = "order_update"
    SYSTEM = "system"
    MESSAGE = "message"
    MODIFICATION_REQUEST = "modification_request"


class Notification(ApiModel):
    """A notification for the signed-in user."""

    id: int
    user_id: int
    title: str
    message: str
    type: str = NotificationType.SYSTEM.value
    is_read: bool = False
    data: dict[str, Any] | None = None
    created_at: datetime | None = None
