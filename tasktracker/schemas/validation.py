"""Explicit payload validation for route handlers.

Handlers take the raw JSON body and run it through :func:`validate_payload`,
which returns a tagged result instead of raising, so the route decides how a
failure is reported. :func:`require_valid` is the common shortcut that turns a
failed result into a 400 :class:`~tasktracker.errors.ValidationError`.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError
from tasktracker.errors import ValidationError

M = TypeVar("M", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


@dataclass
class Validated:
    ok: bool
    data: Optional[BaseModel] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)


def flatten_errors(errors: List[dict]) -> Dict[str, List[str]]:
    """Group pydantic error entries by field, e.g. ``{"title": ["Title is required"]}``."""
    flat: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        key = ".".join(loc) or "body"
        msg = str(err.get("msg", ""))
        if msg.startswith(_VALUE_ERROR_PREFIX):
            msg = msg[len(_VALUE_ERROR_PREFIX):]
        flat.setdefault(key, []).append(msg)
    return flat


def validate_payload(model: Type[M], payload: Any) -> Validated:
    try:
        return Validated(ok=True, data=model.model_validate(payload))
    except PydanticValidationError as exc:
        return Validated(ok=False, errors=flatten_errors(exc.errors()))


def require_valid(model: Type[M], payload: Any) -> M:
    result = validate_payload(model, payload)
    if not result.ok:
        raise ValidationError(result.errors)
    return result.data
