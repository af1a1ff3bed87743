"""Exceptions raised by the CRM service layer.

Controllers never build error responses themselves; the application
registers handlers that translate these into HTTP status codes.
"""

from typing import Optional


class ServiceError(Exception):
    """Base exception for service layer failures."""

    status_code = 500

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_payload(self) -> dict:
        return {"message": self.message}


class LeadValidationError(ServiceError):
    """Raised when input fails a business rule (mobile format, required date)."""

    status_code = 400


class DuplicateLeadError(ServiceError):
    """Raised when a lead with the same normalized mobile already exists."""

    status_code = 409

    def __init__(
        self,
        message: str,
        lead_id: Optional[str],
        *,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.lead_id = lead_id

    def to_payload(self) -> dict:
        return {"message": self.message, "lead_id": self.lead_id}


class LeadNotFoundError(ServiceError):
    """Raised when a lead identifier matches no stored lead."""

    status_code = 404


class FollowUpNotFoundError(ServiceError):
    """Raised when a lead has neither a current follow-up nor any history."""

    status_code = 404


class AuthenticationError(ServiceError):
    """Raised for missing, expired or invalid credentials."""

    status_code = 401


class PermissionDeniedError(ServiceError):
    """Raised when the caller's role is not allowed to perform an action."""

    status_code = 403


class DuplicateUserError(ServiceError):
    """Raised when a user name is already taken."""

    status_code = 409
