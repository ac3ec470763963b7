"""Domain exception hierarchy for structured error responses.

Every error carries a machine-checkable ``code`` and a ``details`` list of
plain dicts; rendering localized text is left to the caller.
"""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class ForbiddenException(AppException):
    code = "FORBIDDEN"
    status_code = 403


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422


class StateConflictException(AppException):
    code = "STATE_CONFLICT"
    status_code = 409


class DependencyUnavailableException(AppException):
    code = "DEPENDENCY_UNAVAILABLE"
    status_code = 503


class RateLimitException(AppException):
    code = "RATE_LIMITED"
    status_code = 429


# ---------------------------------------------------------------------------
# Bid rejections
# ---------------------------------------------------------------------------


class _BoundViolation(ValidationException):
    """A numeric value fell outside ``[minimum, maximum]``."""

    field: str = "value"

    def __init__(
        self,
        value: float,
        minimum: float,
        maximum: float | None,
        message: str | None = None,
    ) -> None:
        if value < minimum:
            bound, limit = "minimum", minimum
        else:
            bound, limit = "maximum", maximum
        detail = {
            "field": self.field,
            "bound": bound,
            "limit": limit,
            "value": value,
            "delta": value - limit if limit is not None else None,
        }
        super().__init__(
            message or f"{self.field} {value} violates {bound} {limit}",
            details=[detail],
        )
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        self.bound = bound


class PriceOutOfBoundsException(_BoundViolation):
    code = "PRICE_OUT_OF_BOUNDS"
    field = "price"


class DurationOutOfBoundsException(_BoundViolation):
    code = "DURATION_OUT_OF_BOUNDS"
    field = "days"


class ProjectNotOpenException(StateConflictException):
    code = "PROJECT_NOT_OPEN"


class DuplicateBidException(StateConflictException):
    code = "DUPLICATE_BID"


class InvalidStateTransitionException(StateConflictException):
    code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        action: str,
        current_status: str,
        allowed_from: list[str] | None = None,
    ) -> None:
        super().__init__(
            f"Cannot perform '{action}' from status '{current_status}'",
            details=[
                {
                    "action": action,
                    "current_status": current_status,
                    "allowed_from": allowed_from or [],
                }
            ],
        )
        self.action = action
        self.current_status = current_status
