"""Standardized result structures returned across the annotation boundary."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class ErrorCode(Enum):
    """Standard error codes for consistent error handling."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    CODEC_ERROR = "CODEC_ERROR"
    PARTIAL_MUTATION = "PARTIAL_MUTATION"
    RASTERIZATION_ERROR = "RASTERIZATION_ERROR"


@dataclass
class AnnotationResult:
    """Artifact produced by one annotation call.

    Unpacks as ``(output_bytes, output_format)`` so callers that only need
    the artifact can write ``data, fmt = service.annotate(...)``.
    """
    output_bytes: bytes
    output_format: str
    modifications: int = 0
    placeholders: int = 0
    used_fallback: bool = False
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __iter__(self) -> Iterator[Any]:
        yield self.output_bytes
        yield self.output_format

    @property
    def partial(self) -> bool:
        """True when some placeholders were written before a later one failed."""
        return any(w.startswith(ErrorCode.PARTIAL_MUTATION.value) for w in self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary without the artifact bytes."""
        return {
            "output_format": self.output_format,
            "size": len(self.output_bytes),
            "modifications": self.modifications,
            "placeholders": self.placeholders,
            "used_fallback": self.used_fallback,
            "error": self.error,
            "warnings": self.warnings,
            "created_at": self.created_at.isoformat(),
        }
