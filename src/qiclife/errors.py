"""Domain errors raised by services and mapped to HTTP statuses by routers."""

from __future__ import annotations


class NotFoundError(LookupError):
    """A referenced record does not exist (404)."""


class ConflictError(ValueError):
    """The request conflicts with current state (409)."""


class DomainValidationError(ValueError):
    """The request is well-formed but violates a business rule (400)."""

    def __init__(self, message: str, details: object | None = None, extra: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.details = details
        # Rendered as top-level keys of the error body
        self.extra = extra or {}


class InsufficientCoinsError(DomainValidationError):
    """The user's coin balance cannot cover the requested spend (400)."""

    def __init__(self, required: int, available: int | None = None) -> None:
        super().__init__("Insufficient coins", {"required": required, "available": available})
        self.required = required
        self.available = available


class ForbiddenError(PermissionError):
    """The user may not perform this action (403)."""


class GoneError(LookupError):
    """The record exists but is no longer usable (410)."""


class LimitExceededError(RuntimeError):
    """A per-user quota is used up (429)."""
