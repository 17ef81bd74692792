"""Visual treatments for server-provided status values."""
from dataclasses import dataclass
from enum import Enum

from bazaar.schemas.modification_request import ModificationRequestStatus
from bazaar.schemas.order import OrderStatus


class Tone(Enum):
    """Colour family of a status badge."""

    NEUTRAL = "neutral"
    INFO = "info"
    PROGRESS = "progress"
    WARNING = "warning"
    SUCCESS = "success"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class StatusTreatment:
    """How a status is shown."""

    label: str
    tone: Tone


ORDER_STATUS_TREATMENTS: dict[str, StatusTreatment] = {
    OrderStatus.PENDING.value: StatusTreatment("Pending", Tone.NEUTRAL),
    OrderStatus.PROCESSING.value: StatusTreatment("Processing", Tone.PROGRESS),
    OrderStatus.SHIPPED.value: StatusTreatment("Shipped", Tone.INFO),
    OrderStatus.DELIVERED.value: StatusTreatment("Delivered", Tone.SUCCESS),
    OrderStatus.CANCELLED.value: StatusTreatment("Cancelled", Tone.DESTRUCTIVE),
}

REQUEST_STATUS_TREATMENTS: dict[str, StatusTreatment] = {
    ModificationRequestStatus.PENDING.value: StatusTreatment("Pending", Tone.WARNING),
    ModificationRequestStatus.APPROVED.value: StatusTreatment("Approved", Tone.SUCCESS),
    ModificationRequestStatus.DENIED.value: StatusTreatment("Denied", Tone.DESTRUCTIVE),
}

# Progress bar percentage per order status; cancelled and unknown show none
ORDER_PROGRESS: dict[str, int] = {
    OrderStatus.PENDING.value: 10,
    OrderStatus.PROCESSING.value: 30,
    OrderStatus.SHIPPED.value: 70,
    OrderStatus.DELIVERED.value: 100,
}


def _fallback(status: str) -> StatusTreatment:
    return StatusTreatment(status or "Unknown", Tone.NEUTRAL)


def order_status_treatment(status: str) -> StatusTreatment:
    """Treatment for an order status; unknown values get a neutral badge with the raw value."""
    return ORDER_STATUS_TREATMENTS.get(status) or _fallback(status)


def request_status_treatment(status: str) -> StatusTreatment:
    """Treatment for a modification request status; unknown values are neutral."""
    return REQUEST_STATUS_TREATMENTS.get(status) or _fallback(status)


def order_progress(status: str) -> int:
    """Percentage of the order journey completed."""
    return ORDER_PROGRESS.get(status, 0)
