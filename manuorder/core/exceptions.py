# manuorder/core/exceptions.py

from enum import Enum
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # Identity and access
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Lookup and input
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # State conflicts
    CONFLICT = "CONFLICT"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # System errors
    UPLOAD_FAILED = "UPLOAD_FAILED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ManuOrderError(Exception):
    """Base exception for all ManuOrder application errors."""

    default_code = ErrorCode.INTERNAL_SERVER_ERROR
    log_level = logging.WARNING

    def __init__(
        self,
        user_message: str,
        technical_details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None,
    ):
        self.code = code or self.default_code
        self.user_message = user_message
        self.technical_details = technical_details
        self.context = context or {}

        logger.log(
            self.log_level,
            f"ManuOrder Error: {self.code.value}: {user_message}",
            extra={
                "error_code": self.code.value,
                "user_message": user_message,
                "technical_details": technical_details,
                "context": self.context,
            },
        )

        super().__init__(self.user_message)

    @property
    def retryable(self) -> bool:
        return False

    def to_response(self) -> Dict[str, Any]:
        """Convert to API response format."""
        response = {
            "error": {
                "code": self.code.value,
                "message": self.user_message,
            }
        }
        if self.context:
            response["error"]["context"] = self.public_context()
        if self.retryable:
            response["error"]["retryable"] = True
        return response

    def public_context(self) -> Dict[str, Any]:
        return {k: str(v) for k, v in self.context.items()}


class UnauthorizedError(ManuOrderError):
    """No session, or a session that cannot be verified."""

    default_code = ErrorCode.UNAUTHORIZED

    def __init__(self, user_message: str = "Unauthorized", technical_details: Optional[str] = None):
        super().__init__(user_message, technical_details)


class ForbiddenError(ManuOrderError):
    """Valid session, but the role or ownership does not permit the action."""

    default_code = ErrorCode.FORBIDDEN

    def __init__(self, user_message: str = "Forbidden", context: Optional[Dict[str, Any]] = None):
        super().__init__(user_message, context=context)


class NotFoundError(ManuOrderError):
    default_code = ErrorCode.NOT_FOUND

    def __init__(self, user_message: str = "Not found", context: Optional[Dict[str, Any]] = None):
        super().__init__(user_message, context=context)


class ValidationError(ManuOrderError):
    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, user_message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(user_message, context=context)


class ConflictError(ManuOrderError):
    default_code = ErrorCode.CONFLICT

    def __init__(
        self,
        user_message: str,
        context: Optional[Dict[str, Any]] = None,
        technical_details: Optional[str] = None,
    ):
        super().__init__(user_message, technical_details, context)


class InvalidStatusTransitionError(ConflictError):
    """An admin status edit that does not follow the transition table."""

    default_code = ErrorCode.INVALID_STATUS_TRANSITION

    def __init__(self, current_status: str, target_status: str, context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context.update({"current_status": current_status, "target_status": target_status})
        super().__init__(
            f"Cannot move an order from {current_status} to {target_status}",
            context=context,
        )


class UploadError(ManuOrderError):
    """The blob store rejected or could not receive a payload."""

    default_code = ErrorCode.UPLOAD_FAILED

    def __init__(self, user_message: str = "Failed to upload file", technical_details: Optional[str] = None):
        super().__init__(user_message, technical_details)


class InternalError(ManuOrderError):
    """Storage or network fault. Only a generic message reaches the caller."""

    log_level = logging.ERROR

    def __init__(
        self,
        technical_details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
    ):
        self._retryable = retryable
        super().__init__(
            "The service is temporarily unavailable. Please retry." if retryable
            else "An internal server error occurred. Please try again later.",
            technical_details,
            context,
            code=ErrorCode.SERVICE_UNAVAILABLE if retryable else ErrorCode.INTERNAL_SERVER_ERROR,
        )

    @property
    def retryable(self) -> bool:
        return self._retryable

    def to_response(self) -> Dict[str, Any]:
        response = {
            "error": {
                "code": self.code.value,
                "message": self.user_message,
            }
        }
        if self.retryable:
            response["error"]["retryable"] = True
        return response
