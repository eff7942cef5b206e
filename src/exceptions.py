"""
Custom exceptions for the training engine.

The computation paths never raise for missing data; missing values
propagate as ``None``. These exceptions cover caller mistakes (invalid
arguments), explicit lookups that must succeed, and storage failures.
Each exception carries:
- A descriptive message
- An error code for API responses
- Optional details for debugging
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for consistent error payloads."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    WORKOUT_NOT_FOUND = "WORKOUT_NOT_FOUND"
    ADAPTATION_NOT_FOUND = "ADAPTATION_NOT_FOUND"

    DATABASE_ERROR = "DATABASE_ERROR"


class TrainingEngineError(Exception):
    """
    Base exception for all training engine errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(TrainingEngineError):
    """Raised when caller-supplied arguments are invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
        )


# ============================================================================
# Not Found Errors
# ============================================================================

class NotFoundError(TrainingEngineError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            details=error_details,
        )


class WorkoutNotFoundError(NotFoundError):
    """Raised when a workout library id does not exist."""

    def __init__(self, workout_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Workout",
            resource_id=workout_id,
            details=details,
        )
        self.code = ErrorCode.WORKOUT_NOT_FOUND


class AdaptationNotFoundError(NotFoundError):
    """Raised when no adaptation is stored for a planned workout."""

    def __init__(self, planned_workout_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Adaptation",
            resource_id=planned_workout_id,
            details=details,
        )
        self.code = ErrorCode.ADAPTATION_NOT_FOUND


# ============================================================================
# Storage Errors
# ============================================================================

class DatabaseError(TrainingEngineError):
    """Raised when the adaptation store fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            details=error_details,
        )
