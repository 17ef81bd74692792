"""Local input validation: build request schemas or fail before any network call."""
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from bazaar.core.errors import ValidationFailedError

M = TypeVar("M", bound=BaseModel)


def build(model: type[M], **data: Any) -> M:
    """Instantiate `model`, converting the first pydantic error into ValidationFailedError."""
    try:
        return model(**data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or model.__name__
        cause = error.get("ctx", {}).get("error")
        message = str(cause) if isinstance(cause, Exception) else error["msg"]
        raise ValidationFailedError(field, message) from e


def body(model: BaseModel, **extra: Any) -> dict[str, Any]:
    """JSON body for a request schema, camelCase keys, plus extra fields."""
    return {**model.model_dump(mode="json", by_alias=True, exclude_none=True), **extra}
