"""Error taxonomy shared by the verification, onboarding and account flows.

Every error is recoverable by the caller (retry the input or request a new
challenge). Views translate them to JSON with ``FlowError.as_dict``.
"""
from __future__ import annotations


class FlowError(Exception):
    code = "error"
    status = 400
    default_message = "Request could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFound(FlowError):
    code = "not_found"
    status = 404
    default_message = "Not found."


class InvalidSession(NotFound):
    code = "invalid_session"
    status = 401
    default_message = "Session is invalid or has expired."


class Expired(FlowError):
    code = "expired"
    status = 410
    default_message = "This verification has expired. Request a new one."


class AlreadyUsed(FlowError):
    code = "already_used"
    status = 410
    default_message = "This verification has already been used."


class Conflict(AlreadyUsed):
    """Lost the race on the atomic consume."""

    code = "already_used"
    status = 409


class InvalidCode(FlowError):
    code = "invalid_code"
    default_message = "Invalid code."


class TooManyAttempts(FlowError):
    code = "too_many_attempts"
    status = 429
    default_message = "Too many attempts. Request a new code."


class ValidationError(FlowError):
    code = "validation_error"
    default_message = "Invalid input."

    def __init__(self, message: str | None = None, field_errors: dict[str, str] | None = None):
        super().__init__(message)
        self.field_errors = field_errors or {}

    def as_dict(self) -> dict:
        data = super().as_dict()
        if self.field_errors:
            data["fields"] = self.field_errors
        return data


class OutOfOrder(FlowError):
    code = "out_of_order"
    status = 409
    default_message = "This step is not available yet."


class InvalidCredentials(FlowError):
    code = "invalid_credentials"
    status = 401
    default_message = "Invalid email or password."
