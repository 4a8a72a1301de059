"""
Annotation Configuration Management System.

This module provides configuration management for the annotation engine,
including placeholder keywords, layout geometry, rasterization settings,
fallback reporting and batch processing limits.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from grade_annotator.utils.logger import logger

DEFAULT_SCORE_KEYWORDS = ["评分", "得分", "分数", "Score", "Grade", "Points", "Mark"]
DEFAULT_COMMENT_KEYWORDS = [
    "Teacher Comments",
    "教师评语",
    "老师评语",
    "评语",
    "建议",
    "评价",
    "Comments",
    "Feedback",
    "Remarks",
]
DEFAULT_SIGNATURE_KEYWORDS = [
    "指导教师",
    "教师签名",
    "签名",
    "Instructor",
    "Teacher",
    "Signature",
    "Signed by",
]


@dataclass
class KeywordConfig:
    """Placeholder keywords per annotation category."""
    score: List[str] = field(default_factory=lambda: list(DEFAULT_SCORE_KEYWORDS))
    comment: List[str] = field(default_factory=lambda: list(DEFAULT_COMMENT_KEYWORDS))
    signature: List[str] = field(default_factory=lambda: list(DEFAULT_SIGNATURE_KEYWORDS))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'score': list(self.score),
            'comment': list(self.comment),
            'signature': list(self.signature)
        }


@dataclass
class LocatorConfig:
    """Configuration for placeholder location heuristics."""
    # A paragraph following a label is treated as a writable slot only when
    # its text is shorter than this. Heuristic, not a guarantee.
    short_slot_threshold: int = 20
    vertical_ratio: float = 1.2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'short_slot_threshold': self.short_slot_threshold,
            'vertical_ratio': self.vertical_ratio
        }


@dataclass
class LayoutConfig:
    """Geometry for placing content on fixed pages, in points."""
    score_offset: float = 50.0
    comment_margin: float = 50.0
    comment_target_width: float = 350.0
    edge_margin: float = 20.0
    overflow_inset: float = 40.0
    overflow_gap: float = 15.0
    baseline_lift: float = 10.0
    min_top_margin: float = 30.0
    signature_offset: float = 20.0
    signature_max_width: float = 150.0
    signature_drop: float = 5.0
    max_collision_attempts: int = 10

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return dict(self.__dict__)


@dataclass
class RenderConfig:
    """Configuration for native runs and rasterized text."""
    scale: float = 2.0
    score_font_size: int = 36
    comment_font_size: int = 18
    signature_font_size: int = 48
    native_font_size: float = 9.0
    line_height: float = 1.4
    padding: int = 10
    score_color: str = "FF0000"
    comment_color: str = "FF0000"
    signature_color: str = "000000"
    artistic_font_name: str = "KaiTi"
    font_paths: List[str] = field(default_factory=list)
    signature_font_paths: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = dict(self.__dict__)
        data['font_paths'] = list(self.font_paths)
        data['signature_font_paths'] = list(self.signature_font_paths)
        return data


@dataclass
class FallbackConfig:
    """Configuration for the fallback grading report."""
    title: str = "Grading Report"
    comment_limit: int = 1500
    default_signer: str = "AI Grader"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'title': self.title,
            'comment_limit': self.comment_limit,
            'default_signer': self.default_signer
        }


@dataclass
class BatchConfig:
    """Configuration for batch annotation."""
    max_workers: int = 3
    output_prefix: str = "Graded_"
    folder_name: str = "Graded_Assignments"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'max_workers': self.max_workers,
            'output_prefix': self.output_prefix,
            'folder_name': self.folder_name
        }


@dataclass
class AnnotationConfig:
    """Complete annotation engine configuration."""
    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    max_score: float = 100

    def format_score(self, display_score: str) -> str:
        """Format a score as ``"<score> / <max>"``."""
        max_score = int(self.max_score) if float(self.max_score).is_integer() else self.max_score
        return f"{display_score} / {max_score}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'keywords': self.keywords.to_dict(),
            'locator': self.locator.to_dict(),
            'layout': self.layout.to_dict(),
            'render': self.render.to_dict(),
            'fallback': self.fallback.to_dict(),
            'batch': self.batch.to_dict(),
            'max_score': self.max_score
        }


def _split_paths(value: str) -> List[str]:
    return [p.strip() for p in value.split(os.pathsep) if p.strip()]


class AnnotationConfigManager:
    """
    Manager for annotation configuration.

    Loads settings from a JSON file and applies environment variable
    overrides. Keyword lists are read from the file only.
    """

    # (env var, section, key, converter)
    ENV_OVERRIDES: List[Tuple[str, str, str, Any]] = [
        ("ANNOTATION_SHORT_SLOT_THRESHOLD", "locator", "short_slot_threshold", int),
        ("ANNOTATION_MAX_WORKERS", "batch", "max_workers", int),
        ("ANNOTATION_RASTER_SCALE", "render", "scale", float),
        ("ANNOTATION_MAX_SCORE", "", "max_score", float),
        ("ANNOTATION_FONT_PATHS", "render", "font_paths", _split_paths),
        ("ANNOTATION_SIGNATURE_FONT_PATHS", "render", "signature_font_paths", _split_paths),
    ]

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize annotation configuration manager.

        Args:
            config_path: Path to annotation configuration file
        """
        self.config_path = config_path or os.getenv(
            "ANNOTATION_CONFIG_PATH", "config/annotation.json"
        )
        self._config_data: Dict[str, Any] = {}
        self._load_configuration()

    def _load_configuration(self):
        """Load configuration from file and environment variables."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self._config_data = json.load(f)
                logger.info(f"Loaded annotation configuration from {self.config_path}")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load annotation configuration: {e}")
                self._config_data = {}
        else:
            logger.debug(f"Annotation configuration file not found: {self.config_path}")
            self._config_data = {}

        if not isinstance(self._config_data, dict):
            logger.error("Annotation configuration must be a JSON object; using defaults")
            self._config_data = {}

        self._apply_environment_overrides()

    def _apply_environment_overrides(self):
        """Apply environment variable overrides to configuration."""
        for env_var, section, key, convert in self.ENV_OVERRIDES:
            raw = os.getenv(env_var)
            if not raw:
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                logger.error(f"Invalid environment variable value for {env_var}: {e}")
                continue

            if section:
                target = self._config_data.setdefault(section, {})
                if not isinstance(target, dict):
                    target = self._config_data[section] = {}
            else:
                target = self._config_data
            target[key] = value
            logger.info(f"Applied environment override: {env_var}={raw}")

    def _section(self, name: str) -> Dict[str, Any]:
        data = self._config_data.get(name, {})
        return data if isinstance(data, dict) else {}

    def get_keyword_config(self) -> KeywordConfig:
        """
        Get placeholder keyword configuration.

        Returns:
            KeywordConfig instance
        """
        data = self._section("keywords")
        defaults = KeywordConfig()
        return KeywordConfig(
            score=list(data.get("score", defaults.score)),
            comment=list(data.get("comment", defaults.comment)),
            signature=list(data.get("signature", defaults.signature))
        )

    def get_locator_config(self) -> LocatorConfig:
        """Get locator heuristics configuration."""
        data = self._section("locator")
        return LocatorConfig(
            short_slot_threshold=int(data.get("short_slot_threshold", 20)),
            vertical_ratio=float(data.get("vertical_ratio", 1.2))
        )

    def get_layout_config(self) -> LayoutConfig:
        """Get page layout configuration."""
        data = self._section("layout")
        defaults = LayoutConfig()
        values = {
            key: type(default)(data[key]) if key in data else default
            for key, default in defaults.__dict__.items()
        }
        return LayoutConfig(**values)

    def get_render_config(self) -> RenderConfig:
        """Get rendering configuration."""
        data = self._section("render")
        defaults = RenderConfig()
        values = {}
        for key, default in defaults.__dict__.items():
            if key not in data:
                values[key] = default
            elif isinstance(default, list):
                values[key] = list(data[key])
            else:
                values[key] = type(default)(data[key])
        return RenderConfig(**values)

    def get_fallback_config(self) -> FallbackConfig:
        """Get fallback report configuration."""
        data = self._section("fallback")
        return FallbackConfig(
            title=data.get("title", "Grading Report"),
            comment_limit=int(data.get("comment_limit", 1500)),
            default_signer=data.get("default_signer", "AI Grader")
        )

    def get_batch_config(self) -> BatchConfig:
        """Get batch processing configuration."""
        data = self._section("batch")
        max_workers = int(data.get("max_workers", 3))
        if max_workers <= 0:
            logger.warning(f"Invalid max_workers {max_workers}; using 1")
            max_workers = 1
        return BatchConfig(
            max_workers=max_workers,
            output_prefix=data.get("output_prefix", "Graded_"),
            folder_name=data.get("folder_name", "Graded_Assignments")
        )

    def get_config(self) -> AnnotationConfig:
        """
        Build the complete annotation configuration.

        Returns:
            AnnotationConfig instance
        """
        return AnnotationConfig(
            keywords=self.get_keyword_config(),
            locator=self.get_locator_config(),
            layout=self.get_layout_config(),
            render=self.get_render_config(),
            fallback=self.get_fallback_config(),
            batch=self.get_batch_config(),
            max_score=float(self._config_data.get("max_score", 100))
        )

    def reload_configuration(self):
        """Reload configuration from file and environment variables."""
        logger.info("Reloading annotation configuration")
        self._load_configuration()

    def validate_configuration(self) -> List[str]:
        """
        Validate configuration and return list of warnings.

        Returns:
            List of validation warnings
        """
        warnings = []
        config = self.get_config()

        for category, words in config.keywords.to_dict().items():
            if not [w for w in words if w and w.strip()]:
                warnings.append(f"No keywords configured for {category}")

        if config.locator.short_slot_threshold <= 0:
            warnings.append("Invalid short_slot_threshold: must be > 0")
        if config.locator.vertical_ratio <= 0:
            warnings.append("Invalid vertical_ratio: must be > 0")
        if config.render.scale <= 0:
            warnings.append("Invalid raster scale: must be > 0")
        if config.layout.comment_target_width <= 0:
            warnings.append("Invalid comment_target_width: must be > 0")
        if config.max_score <= 0:
            warnings.append("Invalid max_score: must be > 0")

        return warnings

    def export_config(self) -> Dict[str, Any]:
        """Export the effective configuration including defaults."""
        return self.get_config().to_dict()


_config_manager: Optional[AnnotationConfigManager] = None


def get_annotation_config() -> AnnotationConfig:
    """Return the process-wide annotation configuration."""
    global _config_manager
    if _config_manager is None:
        _config_manager = AnnotationConfigManager()
    return _config_manager.get_config()
