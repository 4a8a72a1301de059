"""Configuration for the annotation engine."""

from .annotation_config import (
    AnnotationConfig,
    AnnotationConfigManager,
    BatchConfig,
    FallbackConfig,
    KeywordConfig,
    LayoutConfig,
    LocatorConfig,
    RenderConfig,
    get_annotation_config,
)

__all__ = [
    "AnnotationConfig",
    "AnnotationConfigManager",
    "BatchConfig",
    "FallbackConfig",
    "KeywordConfig",
    "LayoutConfig",
    "LocatorConfig",
    "RenderConfig",
    "get_annotation_config",
]
