"""Exception types shared across the planner."""

from __future__ import annotations


class PlanyError(Exception):
    """Base class for planner errors."""


class UnauthenticatedError(PlanyError):
    """Raised when a record-store call is made without a signed-in user."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class IdentityProviderError(PlanyError):
    """A failure reported by the identity provider, passed through as-is."""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(f"{code}: {self.message}" if message and message != code else code)


class DuplicateLessonPlanError(PlanyError):
    """A lesson plan already exists for this class on this date."""

    def __init__(self, recurring_class_id: str, date: str, existing_id: str = ""):
        self.recurring_class_id = recurring_class_id
        self.date = date
        self.existing_id = existing_id
        super().__init__(
            f"A lesson plan for class {recurring_class_id} on {date} already exists"
        )


class ValidationError(PlanyError, ValueError):
    """Malformed entity input (for example a weekend recurring class)."""


__all__ = [
    "DuplicateLessonPlanError",
    "IdentityProviderError",
    "PlanyError",
    "UnauthenticatedError",
    "ValidationError",
]
