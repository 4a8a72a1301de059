"""Models package for standardized data structures."""

from .annotation_models import (
    AnnotationContent,
    BoundingBox,
    Category,
    DocumentFormat,
    FeedbackItem,
    GradingResult,
    InstructorSettings,
    LayoutRegion,
    Orientation,
    PlaceholderMatch,
    PlacementStrategy,
    PlannedDraw,
)
from .api_responses import AnnotationResult, ErrorCode

__all__ = [
    "AnnotationContent",
    "AnnotationResult",
    "BoundingBox",
    "Category",
    "DocumentFormat",
    "ErrorCode",
    "FeedbackItem",
    "GradingResult",
    "InstructorSettings",
    "LayoutRegion",
    "Orientation",
    "PlaceholderMatch",
    "PlacementStrategy",
    "PlannedDraw",
]
