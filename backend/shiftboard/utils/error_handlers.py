"""
Centralized error handling and user-friendly error messages.

Services raise ``AppError`` subclasses; ``main.py`` turns them into the
standard ``{"success": false, "error": ...}`` envelope with the matching
HTTP status code.
"""
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Validation error."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class ForbiddenError(AppError):
    """Caller's organization or identity does not own the resource."""
    def __init__(self, message: str = "Access forbidden", details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class InvalidStateError(AppError):
    """The resource is not in a state that allows the operation."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=409, details=details)


class PreconditionFailedError(AppError):
    """Required confirmation or input for a guarded transition is missing."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class ConflictError(AppError):
    """Another writer changed the resource between read and commit."""
    def __init__(self, message: str = "The resource was modified concurrently", details: dict | None = None):
        super().__init__(message, status_code=409, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Jobs
    "job_not_found": "Job posting not found or has been removed.",
    "job_closed": "This job posting is not accepting applications.",
    "already_applied": "You have already applied to this job.",

    # Applications
    "application_not_found": "Application not found.",
    "application_forbidden": "You don't have access to this application.",
    "already_withdrawn": "Application is already withdrawn.",
    "withdraw_hired": "A hired application cannot be withdrawn.",
    "withdraw_too_late": "This application is past the stage where it can be withdrawn.",
    "concurrent_update": "This application was updated by someone else. Reload and try again.",

    # Pre-hire checks
    "prehire_wrong_stage": "Application must be in PreHireChecks before it can be marked as Hired.",
    "prehire_not_confirmed": "Pre-hire checks confirmation is required before marking as Hired.",
    "prehire_text_missing": "Pre-hire check confirmation text must be provided.",
    "prehire_no_right_to_work": "A positive right-to-work confirmation must be recorded before marking as Hired.",

    # General
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "organization_required": "Organization context required.",
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )
