"""Application-specific exception classes with standardized error handling."""

import traceback
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from grade_annotator.models.api_responses import ErrorCode


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ApplicationError(Exception):
    """Base application error class with enhanced error tracking.

    This class provides a standardized way to handle errors across the
    annotator with consistent error codes, user-friendly messages, and
    detailed context.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        """Initialize application error.

        Args:
            message: Technical error message for developers
            error_code: Standardized error code
            user_message: User-friendly error message
            details: Additional error details
            severity: Error severity level
            context: Context information where error occurred
            original_error: Original exception that caused this error
            recoverable: Whether the pipeline can substitute a result
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.user_message = user_message or self._get_default_user_message()
        self.details = details or {}
        self.severity = severity
        self.context = context or {}
        self.original_error = original_error
        self.recoverable = recoverable

        # Metadata
        self.timestamp = datetime.utcnow()
        self.error_id = f"ERR_{uuid.uuid4().hex[:8].upper()}"
        self.traceback_info = traceback.format_exc() if original_error else None

        if original_error:
            self.details["original_error"] = {
                "type": type(original_error).__name__,
                "message": str(original_error),
            }

    def _get_default_user_message(self) -> str:
        """Get default user-friendly message based on error code."""
        user_messages = {
            ErrorCode.VALIDATION_ERROR: "Please check your input and try again.",
            ErrorCode.UNSUPPORTED_FORMAT: "This file type cannot be annotated.",
            ErrorCode.CODEC_ERROR: "The document could not be read; a summary report was produced instead.",
            ErrorCode.PROCESSING_ERROR: "We're having trouble annotating this document.",
            ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
        }
        return user_messages.get(
            self.error_code, "An error occurred. Please try again."
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and API responses."""
        return {
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "error_code": self.error_code.value,
            "message": self.message,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "details": self.details,
            "context": self.context,
            "traceback": self.traceback_info,
        }

    def __str__(self) -> str:
        """String representation of the error."""
        return f"[{self.error_code.value}] {self.message} (ID: {self.error_id})"

    def __repr__(self) -> str:
        """Detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code={self.error_code}, "
            f"severity={self.severity}, "
            f"error_id='{self.error_id}'"
            f")"
        )


class ProcessingError(ApplicationError):
    """Processing error for pipeline stage failures."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            error_code=ErrorCode.PROCESSING_ERROR,
            details=details,
            severity=ErrorSeverity.MEDIUM,
            recoverable=True,
            **kwargs,
        )


class ConfigurationError(ApplicationError):
    """Configuration error for invalid or missing collaborators."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=ErrorCode.INTERNAL_ERROR,
            user_message="A configuration error occurred. Please contact support.",
            details=details,
            severity=ErrorSeverity.HIGH,
            recoverable=False,
            **kwargs,
        )


class UnsupportedFormatError(ApplicationError):
    """Raised when a document's format cannot be identified at all."""

    def __init__(self, message: str, format_hint: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if format_hint is not None:
            details["format_hint"] = format_hint

        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            details=details,
            severity=ErrorSeverity.LOW,
            recoverable=False,
            **kwargs,
        )


class CodecError(ApplicationError):
    """Malformed or unparseable document content."""

    def __init__(
        self,
        message: str,
        document_format: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if document_format:
            details["document_format"] = document_format
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            error_code=ErrorCode.CODEC_ERROR,
            details=details,
            severity=ErrorSeverity.MEDIUM,
            recoverable=True,
            **kwargs,
        )


class PartialMutationError(ApplicationError):
    """Some placeholders were written before a later one failed."""

    def __init__(self, message: str, applied: int, failed: int = 1, **kwargs):
        details = kwargs.pop("details", {})
        details["applied"] = applied
        details["failed"] = failed
        self.applied = applied
        self.failed = failed

        super().__init__(
            message=message,
            error_code=ErrorCode.PARTIAL_MUTATION,
            details=details,
            severity=ErrorSeverity.LOW,
            recoverable=True,
            **kwargs,
        )


class RasterizationError(ApplicationError):
    """Text measurement or drawing failed for one region."""

    def __init__(self, message: str, text: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if text is not None:
            details["text_length"] = len(text)

        super().__init__(
            message=message,
            error_code=ErrorCode.RASTERIZATION_ERROR,
            details=details,
            severity=ErrorSeverity.LOW,
            recoverable=True,
            **kwargs,
        )
