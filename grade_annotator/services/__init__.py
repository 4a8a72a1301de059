"""Annotation services."""

from .annotation_service import AnnotationService, annotate, get_annotation_service
from .base_service import BaseService, RequestOutcome, ServiceMetrics, ServiceStatus
from .content_renderer import ContentRenderer, RenderedContent, RenderMode, TextRasterizer
from .document_mutator import DocumentMutator
from .fallback_report import FallbackReportGenerator
from .geometric_locator import GeometricLocator, build_char_map
from .keyword_index import KeywordIndex
from .layout_planner import LayoutPlanner, PlacementFrame
from .structural_locator import StructuralLocator

__all__ = [
    "AnnotationService",
    "BaseService",
    "ContentRenderer",
    "DocumentMutator",
    "FallbackReportGenerator",
    "GeometricLocator",
    "KeywordIndex",
    "LayoutPlanner",
    "PlacementFrame",
    "RenderMode",
    "RenderedContent",
    "RequestOutcome",
    "ServiceMetrics",
    "ServiceStatus",
    "StructuralLocator",
    "TextRasterizer",
    "annotate",
    "build_char_map",
    "get_annotation_service",
]
