"""Transient user-visible notifications ("toasts")."""
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from bazaar.core.errors import OperationFailedError, ValidationFailedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ToastVariant(Enum):
    """Visual variant of a toast."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Toast:
    """A short message shown to the user and then dismissed."""

    title: str
    description: str
    variant: ToastVariant = ToastVariant.DEFAULT


class ToastQueue:
    """Bounded queue of toasts waiting to be shown; the oldest drop first."""

    def __init__(self, limit: int = 5) -> None:
        self._toasts: deque[Toast] = deque(maxlen=limit)

    def push(self, title: str, description: str, variant: ToastVariant = ToastVariant.DEFAULT) -> Toast:
        """Queue a toast."""
        toast = Toast(title, description, variant)
        self._toasts.append(toast)
        return toast

    def success(self, title: str, description: str) -> Toast:
        """Queue a default toast."""
        return self.push(title, description)

    def error(self, title: str, description: str) -> Toast:
        """Queue a destructive toast."""
        return self.push(title, description, ToastVariant.DESTRUCTIVE)

    def drain(self) -> list[Toast]:
        """Take every queued toast."""
        toasts = list(self._toasts)
        self._toasts.clear()
        return toasts

    def __len__(self) -> int:
        return len(self._toasts)


async def run_action(
    toasts: ToastQueue,
    action: Callable[[], Awaitable[T]],
    success: tuple[str, str] | None = None,
    failure: tuple[str, str] = ("Error", "Something went wrong. Please try again."),
) -> T | None:
    """
    Run a user action and translate its errors into toasts.

    ValidationFailedError and OperationFailedError become destructive toasts
    and the action returns None. AuthRequiredError propagates so the caller
    can redirect to login.
    """
    try:
        result = await action()
    except ValidationFailedError as e:
        toasts.error("Invalid input", e.message)
        return None
    except OperationFailedError as e:
        logger.warning(
            "action_failed", extra={"error": e.message, "status_code": e.status_code},
        )
        title, description = failure
        toasts.error(title, e.message or description)
        return None
    if success is not None:
        toasts.success(*success)
    return result
