"""
Grade Annotator - writes grading results back into student documents.

This package provides functionality for:
- Locating score, comment and signature placeholders in DOCX, XLSX and PDF
- Writing the grade into those placeholders without disturbing formatting
- Producing a grading report when no placeholder can be used
"""

from dotenv import load_dotenv

__version__ = "0.1.0"
__author__ = "Exam Grader Team"
__license__ = "MIT"


# Load environment variables
load_dotenv(".env")

from .models import AnnotationResult, DocumentFormat, GradingResult, InstructorSettings  # noqa: E402
from .services import AnnotationService, annotate  # noqa: E402

# Export public interface
__all__ = [
    "AnnotationResult",
    "AnnotationService",
    "DocumentFormat",
    "GradingResult",
    "InstructorSettings",
    "annotate",
]
