"""Domain errors raised by the workflow services.

Routers let these propagate; ``app.main`` renders them into the standard
``{"success": false, "message": ...}`` envelope with the mapped status code.
"""

from __future__ import annotations

from fastapi import status


class WorkflowError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(WorkflowError):
    default_message = "Invalid request"


class InvalidReviewer(ValidationError):
    default_message = "Selected reviewer is not eligible for this assignment"


class InvalidState(WorkflowError):
    default_message = "Action is not allowed in the assignment's current status"


class Forbidden(WorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden: insufficient role"


class NotFound(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class OtpExpired(WorkflowError):
    default_message = "OTP has expired. Please request a new one."


class InvalidOtp(WorkflowError):
    default_message = "Invalid OTP. Please try again."


class InternalError(WorkflowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
