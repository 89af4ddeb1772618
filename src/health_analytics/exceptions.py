"""
Custom exceptions for the Health Analytics service.

Insufficient history inside the analysis layers is not an error: those
functions return ``None``. The exceptions here cover invalid input and the
performance predictor, whose failures the caller must handle explicitly.
Each exception carries:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Predictor errors
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    NO_TRAINED_MODEL = "NO_TRAINED_MODEL"
    TRAINING_FAILED = "TRAINING_FAILED"


class HealthAnalyticsError(Exception):
    """
    Base exception for all Health Analytics errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
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
# Validation Errors (400)
# ============================================================================

class ValidationError(HealthAnalyticsError):
    """Raised when input validation fails."""

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
            status_code=400,
            details=error_details,
        )


# ============================================================================
# Predictor Errors
# ============================================================================

class PredictorError(HealthAnalyticsError):
    """Base class for performance predictor errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TRAINING_FAILED,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details,
        )


class InsufficientDataError(PredictorError):
    """Raised when a model is trained on fewer rows than the minimum."""

    def __init__(
        self,
        count: int,
        required: int,
        activity: Optional[str] = None,
    ) -> None:
        self.count = count
        self.required = required
        details: Dict[str, Any] = {"count": count, "required": required}
        if activity:
            details["activity"] = activity
        super().__init__(
            message=f"Need {required} workouts with full data to train (have {count})",
            code=ErrorCode.INSUFFICIENT_DATA,
            status_code=422,
            details=details,
        )


class NoTrainedModelError(PredictorError):
    """Raised when no model matches the requested or fallback activity."""

    def __init__(self, activity: Optional[str] = None) -> None:
        details = {"activity": activity} if activity else None
        super().__init__(
            message="No trained model available",
            code=ErrorCode.NO_TRAINED_MODEL,
            status_code=404,
            details=details,
        )


class TrainingFailedError(PredictorError):
    """Raised when a model fit fails or inference yields no value."""

    def __init__(
        self,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            message=f"Training failed: {reason}",
            code=ErrorCode.TRAINING_FAILED,
            status_code=500,
            details=details,
        )
