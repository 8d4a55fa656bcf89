"""
Error kinds raised by the incident reporting storage layer.

All errors are synchronous and carry a status code and a user-facing message
so the caller boundary can surface them as transient notifications.
"""

from http import HTTPStatus
from typing import Any, Dict, List, Optional


class AppException(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: User-facing error message
        status_code: HTTP status code used by the caller boundary
        code: Application error code
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details
            }
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(AppException):
    """Raised when a required field is missing or invalid."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        field_errors: Optional[Dict[str, List[str]]] = None
    ):
        if field_errors:
            details = details or {}
            details["field_errors"] = field_errors
        super().__init__(
            message=message,
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            details=details
        )

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        return self.details.get("field_errors", {})


class NotFoundError(AppException):
    """Raised when an operation targets a nonexistent id."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None
    ):
        if resource_type:
            details = details or {}
            details["resource_type"] = resource_type
        if resource_id:
            details = details or {}
            details["resource_id"] = resource_id
        super().__init__(
            message=message,
            status_code=HTTPStatus.NOT_FOUND,
            code="NOT_FOUND",
            details=details
        )


class StorageError(AppException):
    """Raised when the persisted medium cannot be written or decoded."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        collection: Optional[str] = None,
        operation: Optional[str] = None
    ):
        if collection:
            details = details or {}
            details["collection"] = collection
        if operation:
            details = details or {}
            details["operation"] = operation
        super().__init__(
            message=message,
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="STORAGE_ERROR",
            details=details
        )


class AccessDeniedError(AppException):
    """Raised when an actor may not see or mutate a record."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        required_role: Optional[str] = None
    ):
        if required_role:
            details = details or {}
            details["required_role"] = required_role
        super().__init__(
            message=message,
            status_code=HTTPStatus.FORBIDDEN,
            code="ACCESS_DENIED",
            details=details
        )


class ConcurrencyError(AppException):
    """Raised when a collection changed between read and write."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        collection: Optional[str] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None
    ):
        details = details or {}
        if collection:
            details["collection"] = collection
        if expected_version is not None:
            details["expected_version"] = expected_version
        if actual_version is not None:
            details["actual_version"] = actual_version
        super().__init__(
            message=message,
            status_code=HTTPStatus.CONFLICT,
            code="CONCURRENT_MODIFICATION",
            details=details
        )


def raise_not_found(
    resource_type: str,
    resource_id: Any,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Raise a NotFoundError with a standard message."""
    raise NotFoundError(
        message=f"{resource_type} with ID {resource_id} not found",
        details=details,
        resource_type=resource_type,
        resource_id=resource_id
    )
