"""
Custom exceptions for ProAthlete Coach.

This module defines a hierarchy of exceptions that classify every failure
the plan-generation protocol can produce. Each exception includes:
- A descriptive, user-facing message
- An error code for display and programmatic handling
- Optional details for debugging (never the API credential)
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Configuration errors
    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"

    # Plan / session errors
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
    FEEDBACK_ALREADY_RECORDED = "FEEDBACK_ALREADY_RECORDED"

    # LLM errors
    LLM_API_ERROR = "LLM_API_ERROR"
    LLM_NETWORK_ERROR = "LLM_NETWORK_ERROR"
    LLM_REQUEST_REJECTED = "LLM_REQUEST_REJECTED"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"

    # Storage errors
    DATABASE_ERROR = "DATABASE_ERROR"


class ProAthleteError(Exception):
    """
    Base exception for all ProAthlete Coach errors.

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
        """Convert exception to a dictionary for display or serialization."""
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
# Configuration Errors
# ============================================================================

class ConfigurationError(ProAthleteError):
    """Raised when the app is not configured well enough to call the model."""

    def __init__(
        self,
        message: str = "Missing API key. Configure your API key before generating a plan.",
        setting: Optional[str] = None,
    ) -> None:
        details = {"setting": setting} if setting else None
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_MISSING,
            details=details,
        )


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(ProAthleteError):
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
            details=error_details,
        )


# ============================================================================
# Not Found Errors
# ============================================================================

class NotFoundError(ProAthleteError):
    """Raised when a required piece of session state is missing."""

    def __init__(
        self,
        resource_type: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["resource_type"] = resource_type
        super().__init__(
            message=message or f"No {resource_type.lower()} found",
            code=ErrorCode.NOT_FOUND,
            details=error_details,
        )


class ProfileNotFoundError(NotFoundError):
    """Raised when no athlete profile has been saved yet."""

    def __init__(self) -> None:
        super().__init__(
            resource_type="Athlete Profile",
            message="No athlete profile found. Complete onboarding first.",
        )
        self.code = ErrorCode.PROFILE_NOT_FOUND


class PlanNotFoundError(NotFoundError):
    """Raised when there is no current training plan."""

    def __init__(self) -> None:
        super().__init__(
            resource_type="Training Plan",
            message="No training plan found. Generate an initial plan first.",
        )
        self.code = ErrorCode.PLAN_NOT_FOUND


# ============================================================================
# Conflict Errors
# ============================================================================

class ConflictError(ProAthleteError):
    """Raised when an operation conflicts with existing state."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            details=details,
        )


class FeedbackAlreadyRecordedError(ConflictError):
    """Raised when feedback for a plan day has already been logged."""

    def __init__(self, plan_id: str, day_index: int) -> None:
        super().__init__(
            message=f"Feedback for day {day_index} of plan '{plan_id}' has already been recorded",
            details={"plan_id": plan_id, "day_index": day_index},
        )
        self.code = ErrorCode.FEEDBACK_ALREADY_RECORDED


# ============================================================================
# LLM Errors
# ============================================================================

class LLMError(ProAthleteError):
    """Base class for failures talking to the generative model."""

    def __init__(
        self,
        message: str = "LLM request failed",
        code: ErrorCode = ErrorCode.LLM_API_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
        )


class TransientNetworkError(LLMError):
    """Raised when network failures persist after every retry attempt."""

    def __init__(
        self,
        message: str,
        attempts: Optional[int] = None,
    ) -> None:
        details = {"attempts": attempts} if attempts is not None else None
        super().__init__(
            message=message,
            code=ErrorCode.LLM_NETWORK_ERROR,
            details=details,
        )


class RequestRejectedError(LLMError):
    """Raised when the model endpoint rejects a request (auth, quota, schema...)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
    ) -> None:
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(
            message=message,
            code=ErrorCode.LLM_REQUEST_REJECTED,
            details=details,
        )


class MalformedResponseError(LLMError):
    """Raised when the model response is empty or does not match the plan shape."""

    def __init__(
        self,
        message: str = "Model returned a malformed training plan",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_RESPONSE_INVALID,
            details=details,
        )


# ============================================================================
# Storage Errors
# ============================================================================

class StorageError(ProAthleteError):
    """Raised when persisted app state cannot be read or written."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
    ) -> None:
        details = {"operation": operation} if operation else None
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            details=details,
        )
