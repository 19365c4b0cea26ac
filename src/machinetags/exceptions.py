"""
Machinetags - Custom Exceptions.

Centralized exception handling with standardized error responses.
"""

from typing import Any
from uuid import UUID


class MachineTagsException(Exception):
    """Base exception for machinetags."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        request_id: UUID | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.request_id = request_id
        super().__init__(message)


class NotFoundException(MachineTagsException):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str | int):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type} not found: {resource_id}",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ValidationException(MachineTagsException):
    """Raised for validation errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details={"errors": errors} if errors else None,
        )


class FeatureDisabledException(MachineTagsException):
    """Raised when a feature flag is disabled."""

    def __init__(self, feature_name: str):
        super().__init__(
            code="FEATURE_DISABLED",
            message=f"Feature '{feature_name}' is currently disabled",
            status_code=503,
            details={"feature": feature_name},
        )


class MalformedQuickModeInputException(MachineTagsException):
    """Raised when a quick mode string lacks a namespace or has a broken pair."""

    def __init__(self, raw: str, reason: str):
        super().__init__(
            code="MALFORMED_QUICK_MODE_INPUT",
            message=f"Malformed quick mode input: {reason}",
            status_code=400,
            details={"input": raw, "reason": reason},
        )


class AmbiguousQuickModeExportException(MachineTagsException):
    """Raised when a tag list cannot be rendered as a single quick mode string."""

    def __init__(self, namespaces: list[str], plain_tags: list[str]):
        if plain_tags:
            message = "Quick mode export requires machine tags only."
        else:
            message = "Quick mode export requires tags sharing one namespace."
        super().__init__(
            code="AMBIGUOUS_QUICK_MODE_EXPORT",
            message=message,
            status_code=409,
            details={"namespaces": namespaces, "plain_tags": plain_tags},
        )


class InvalidConditionsException(MachineTagsException):
    """Raised when extra finder conditions have an unsupported shape."""

    def __init__(self, message: str = "Invalid extra conditions.", details: dict[str, Any] | None = None):
        super().__init__(
            code="INVALID_CONDITIONS",
            message=message,
            status_code=400,
            details=details,
        )


class UnsupportedExpressionException(MachineTagsException):
    """Raised when a backend cannot evaluate a filter expression node."""

    def __init__(self, backend: str, node: str):
        super().__init__(
            code="UNSUPPORTED_EXPRESSION",
            message=f"{backend} backend cannot evaluate '{node}' expressions",
            status_code=400,
            details={"backend": backend, "node": node},
        )


class StoreException(MachineTagsException):
    """Raised when the underlying tag store fails."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            code="STORE_ERROR",
            message=f"Store error during {operation}: {message}",
            status_code=500,
            details={"operation": operation},
        )
