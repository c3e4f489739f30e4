"""
Custom Exceptions for StudentTrack
==================================

Every error the API can answer with is one of these classes. The exception
handlers in app.main turn them into the JSON envelope

    {"success": false, "message": "...", "code": "...", "details": {...}}

using the status_code carried by the class.

Usage:
    from app.core.exceptions import StudentNotFoundError, ConflictError

    if not student:
        raise StudentNotFoundError(student_id)
"""

from typing import Optional, Any, Dict, Iterable


class StudentTrackError(Exception):
    """Base exception for all StudentTrack errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            data["details"] = self.details
        return data


# ============================================
# Request Errors (400)
# ============================================

class BadRequestError(StudentTrackError):
    """Input is malformed or missing"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="BAD_REQUEST", details=details)


class NoFieldsToUpdateError(BadRequestError):
    """Partial update with nothing to change"""

    def __init__(self):
        super().__init__("No fields to update")
        self.code = "NO_FIELDS_TO_UPDATE"


# ============================================
# Authentication & Authorization Errors
# ============================================

class UnauthenticatedError(StudentTrackError):
    """Caller could not be identified"""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHENTICATED")


class InvalidCredentialsError(UnauthenticatedError):
    """Username or password did not match"""

    def __init__(self):
        super().__init__("Invalid credentials")
        self.code = "INVALID_CREDENTIALS"


class TokenExpiredError(UnauthenticatedError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(UnauthenticatedError):
    """JWT token is invalid"""

    def __init__(self):
        super().__init__("Invalid token")
        self.code = "INVALID_TOKEN"


class ForbiddenError(StudentTrackError):
    """Caller is known but not allowed to do this"""

    status_code = 403

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="FORBIDDEN", details=details)


class MissingCapabilityError(ForbiddenError):
    """Caller lacks one or more capabilities"""

    def __init__(self, missing: Iterable[str], any_of: bool = False):
        missing = list(missing)
        if any_of:
            message = f"Access denied. Requires one of: {', '.join(missing)}"
        else:
            message = f"Access denied. Missing permission: {', '.join(missing)}"
        super().__init__(message, details={"missing": missing, "any_of": any_of})
        self.code = "MISSING_PERMISSION"


# ============================================
# Resource Errors (404)
# ============================================

class ResourceNotFoundError(StudentTrackError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: int):
        super().__init__("Student", student_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: int):
        super().__init__("User", user_id)


class TaskNotFoundError(ResourceNotFoundError):
    def __init__(self, task_id: int):
        super().__init__("Task", task_id)


class DocumentNotFoundError(ResourceNotFoundError):
    def __init__(self, document_id: int):
        super().__init__("Document", document_id)


class BlobNotFoundError(ResourceNotFoundError):
    """Document row exists but its file is gone from disk"""

    def __init__(self, document_id: int):
        super().__init__("File", document_id)
        self.message = "File not found on server"


# ============================================
# Conflict (409) / Payload (413)
# ============================================

class ConflictError(StudentTrackError):
    """Uniqueness constraint would be violated"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="CONFLICT", details=details)


class PayloadTooLargeError(StudentTrackError):
    """Uploaded file exceeds the configured limit"""

    status_code = 413

    def __init__(self, filename: str, max_size: int):
        super().__init__(
            f"File '{filename}' exceeds the maximum size of {max_size} bytes",
            code="PAYLOAD_TOO_LARGE",
            details={"filename": filename, "max_size": max_size}
        )


# ============================================
# Internal Errors (500)
# ============================================

class InternalError(StudentTrackError):
    """Operation failed after it started; compensation already ran"""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="INTERNAL_ERROR")


class StorageError(InternalError):
    """Blob storage operation failed"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "STORAGE_ERROR"


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: StudentTrackError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        **error.to_dict()
    }
