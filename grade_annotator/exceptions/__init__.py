"""Custom exception classes for the Grade Annotator."""

from ..models.api_responses import ErrorCode
from .application_errors import (
    ApplicationError,
    CodecError,
    ConfigurationError,
    ErrorSeverity,
    PartialMutationError,
    ProcessingError,
    RasterizationError,
    UnsupportedFormatError,
)

__all__ = [
    "ApplicationError",
    "CodecError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorSeverity",
    "PartialMutationError",
    "ProcessingError",
    "RasterizationError",
    "UnsupportedFormatError",
]
