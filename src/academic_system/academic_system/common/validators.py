from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required", {field_name: [f"{field_name} is required"]})
    return str(value).strip()


def require_int_range(value: Any, field_name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number", {field_name: ["Must be a whole number"]})
    if number < low or number > high:
        msg = f"Must be between {low} and {high}"
        raise ValidationError(f"{field_name}: {msg}", {field_name: [msg]})
    return number


def require_percentage(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number", {field_name: ["Must be a number"]})
    if number < 0 or number > 100:
        raise ValidationError(f"{field_name} must be between 0 and 100", {field_name: ["Must be between 0 and 100"]})
    return number


class FieldErrors:
    """Collects per-field messages for a form and raises them together."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def add(self, field_name: str, message: str) -> None:
        self._errors.setdefault(field_name, []).append(message)

    def run(self, check, *args, **kwargs) -> Optional[Any]:
        """Call a ``require_*`` validator, recording its field errors instead of raising."""

        try:
            return check(*args, **kwargs)
        except ValidationError as e:
            for field_name, messages in e.field_errors.items():
                for m in messages:
                    self.add(field_name, m)
            return None

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_if_any(self, message: str = "Validation failed.") -> None:
        if self._errors:
            raise ValidationError(message, self._errors)
