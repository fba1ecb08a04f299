from __future__ import annotations

from typing import Mapping, Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid.

    ``field_errors`` maps a form field name to its messages so the caller can
    show them next to the offending input.
    """

    def __init__(self, message: str, field_errors: Optional[Mapping[str, Sequence[str]]] = None):
        super().__init__(message)
        self.field_errors = {k: list(v) for k, v in (field_errors or {}).items()}


class BusinessRuleError(DomainError):
    """Raised when a valid request is refused by a rule (duplicate, closed session, ...)."""


class InvalidTokenError(BusinessRuleError):
    """Raised when a QR attendance token cannot be accepted."""


class NotFoundError(DomainError):
    """Raised when a referenced row does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
