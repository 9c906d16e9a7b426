"""
Custom exceptions for the school management API.

Every exception carries the HTTP status and the machine readable error code
that the exception handlers in ``app.main`` put into the response envelope.
"""

from typing import Any, Dict, Iterable, List, Optional


class SchoolException(Exception):
    """Base exception class for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)


class ValidationFailedError(SchoolException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, List[str]]] = None,
        error_code: str = "VALIDATION_FAILED",
    ):
        super().__init__(
            message, status_code=422, errors=errors, error_code=error_code
        )


class InvalidEnumError(ValidationFailedError):
    """Raised when a value is outside one of the fixed enumerations."""

    def __init__(self, field: str, value: Any, allowed: Iterable[str]):
        allowed = list(allowed)
        super().__init__(
            "Invalid value for an enumerated field",
            errors={field: [f"'{value}' is not one of: {', '.join(allowed)}."]},
            error_code="INVALID_ENUM",
        )


class DuplicateCodeError(ValidationFailedError):
    """Raised when a subject code is already used by a live subject."""

    def __init__(self, code: str):
        super().__init__(
            "Validation failed",
            errors={"code": ["This subject code is already in use."]},
            error_code="DUPLICATE_CODE",
        )
        self.details = {"code": code}


class DuplicateEmailError(ValidationFailedError):
    """Raised when an email address is already taken."""

    def __init__(self, email: str):
        super().__init__(
            "Validation failed",
            errors={"email": ["The email has already been taken."]},
            error_code="DUPLICATE_EMAIL",
        )
        self.details = {"email": email}


class DuplicateNameError(ValidationFailedError):
    """Raised when a catalogue name is already used by a live row."""

    def __init__(self, name: str):
        super().__init__(
            "Validation failed",
            errors={"name": ["The name has already been taken."]},
            error_code="DUPLICATE_NAME",
        )
        self.details = {"name": name}


class HasActiveEnrollmentsError(SchoolException):
    """Raised when deleting a subject that still has enrolled students."""

    def __init__(self, subject_id: int, students_count: int):
        super().__init__(
            "Cannot delete subject with enrolled students",
            status_code=422,
            details={"subject_id": subject_id, "students_count": students_count},
            error_code="HAS_ACTIVE_ENROLLMENTS",
        )


class StudentNotFoundError(SchoolException):
    """Raised when an enrollment batch references students that do not exist."""

    def __init__(self, missing_ids: Iterable[int]):
        missing_ids = sorted(missing_ids)
        super().__init__(
            "One or more students do not exist",
            status_code=422,
            errors={
                "student_ids": [
                    f"Student {student_id} does not exist." for student_id in missing_ids
                ]
            },
            details={"missing_ids": missing_ids},
            error_code="STUDENT_NOT_FOUND",
        )


class AuthenticationError(SchoolException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Unauthenticated"):
        super().__init__(message, status_code=401, error_code="UNAUTHORIZED")


class AuthorizationError(SchoolException):
    """Raised when the user's role does not grant access."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status_code=403, error_code="FORBIDDEN")


class NotFoundError(SchoolException):
    """Raised when a resource is not found."""

    def __init__(
        self, message: str = "Resource not found", resource_type: Optional[str] = None
    ):
        details = {"resource_type": resource_type} if resource_type else {}
        super().__init__(
            message, status_code=404, details=details, error_code="NOT_FOUND"
        )


class StorageError(SchoolException):
    """Raised when a file cannot be written to storage."""

    def __init__(self, message: str = "Failed to store file"):
        super().__init__(message, status_code=500, error_code="SERVER_ERROR")
