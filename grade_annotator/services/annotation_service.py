"""
Annotation pipeline.

``AnnotationService.annotate`` parses a document, locates its grading
placeholders, writes score, comment and signature into them and serializes
the result. It never raises for a document it can identify: any failure is
replaced by a fallback report, and zero located placeholders result in a
report being appended to the document itself. Only
:class:`UnsupportedFormatError` reaches the caller.
"""

import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from grade_annotator.config import AnnotationConfig, get_annotation_config
from grade_annotator.exceptions import (
    ConfigurationError,
    PartialMutationError,
    RasterizationError,
    UnsupportedFormatError,
)
from grade_annotator.models import (
    AnnotationContent,
    AnnotationResult,
    Category,
    DocumentFormat,
    GradingResult,
    InstructorSettings,
)
from grade_annotator.parsing import CodecRegistry, GeometricModel, StructuralModel
from grade_annotator.utils.logger import logger

from .base_service import BaseService, RequestOutcome
from .content_renderer import ContentRenderer
from .document_mutator import DocumentMutator
from .fallback_report import FallbackReportGenerator
from .geometric_locator import GeometricLocator
from .keyword_index import CATEGORY_ORDER, KeywordIndex
from .layout_planner import LayoutPlanner
from .structural_locator import StructuralLocator

EMPTY_COMMENT = "No comments generated."


@dataclass
class _Outcome:
    """What happened to one parsed model."""
    placeholders: int = 0
    applied: int = 0
    used_fallback: bool = False
    warnings: List[str] = field(default_factory=list)


class AnnotationService(BaseService):
    """Writes grading results into DOCX, XLSX and PDF documents."""

    def __init__(
        self,
        registry: Optional[CodecRegistry] = None,
        keyword_index: Optional[KeywordIndex] = None,
        config: Optional[AnnotationConfig] = None,
        renderer: Optional[ContentRenderer] = None,
        fallback: Optional[FallbackReportGenerator] = None,
        mutator: Optional[DocumentMutator] = None,
    ):
        super().__init__("annotation_service")
        self.config = config or get_annotation_config()
        self.registry = registry or CodecRegistry()
        self.keyword_index = keyword_index or KeywordIndex.from_config(self.config.keywords)
        self.renderer = renderer or ContentRenderer(self.config.render)
        self.fallback = fallback or FallbackReportGenerator(self.config.fallback)
        self.mutator = mutator or DocumentMutator()

        self._validate_collaborators()

        self.structural_locator = StructuralLocator(self.keyword_index, self.config.locator)
        self.geometric_locator = GeometricLocator(self.keyword_index, self.config.locator)
        self._initialized = self.initialize()

    def _validate_collaborators(self) -> None:
        if not self.registry.formats:
            raise ConfigurationError("No document codecs registered", config_key="registry")
        if not any(self.keyword_index.keywords(c) for c in CATEGORY_ORDER):
            raise ConfigurationError("Keyword index is empty", config_key="keywords")
        if getattr(self.renderer, "rasterizer", None) is None:
            raise ConfigurationError("Content renderer has no rasterizer", config_key="renderer")

    def initialize(self) -> bool:
        logger.debug(f"Annotation service ready for {[f.value for f in self.registry.formats]}")
        return True

    def health_check(self) -> bool:
        return bool(self.registry.formats)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def annotate(
        self,
        data: bytes,
        format_hint: Optional[str],
        result: Union[GradingResult, Dict[str, Any]],
        instructor: Optional[InstructorSettings] = None,
        filename: Optional[str] = None,
    ) -> AnnotationResult:
        """Annotate one document.

        Args:
            data: Raw document bytes
            format_hint: MIME type, extension or filename; may be None
            result: Grading result to inject
            instructor: Optional signature settings
            filename: Name used in logs and fallback reports

        Returns:
            AnnotationResult whose bytes are always a usable artifact

        Raises:
            UnsupportedFormatError: if the document format cannot be identified
        """
        start = time.time()
        with self.track_request("annotate") as record:
            fmt = self.registry.detect(data, format_hint)
            codec = self.registry.get(fmt)
            name = filename or f"document.{fmt.extension}"
            annotation = self._run(codec, data, fmt, name, result, instructor)
            if annotation.partial:
                record.outcome = RequestOutcome.PARTIAL
            elif annotation.used_fallback:
                record.outcome = RequestOutcome.FALLBACK

        logger.log_annotation(name, annotation.output_format, annotation.modifications,
                              annotation.used_fallback)
        logger.debug(f"Annotation of {name} took {time.time() - start:.3f}s")
        return annotation

    def extract_text(self, data: bytes, format_hint: Optional[str] = None) -> str:
        """Extract plain text from a document.

        Raises:
            UnsupportedFormatError: if the format cannot be identified
            CodecError: if the document cannot be parsed
        """
        fmt = self.registry.detect(data, format_hint)
        return self.registry.get(fmt).extract_text(data)

    def output_filename(self, filename: str, output_format: str) -> str:
        """``Graded_<stem>.<ext>`` for an annotated artifact."""
        stem = Path(filename).stem or "document"
        return f"{self.config.batch.output_prefix}{stem}.{output_format}"

    def annotate_batch(
        self,
        items: Iterable[Tuple[str, bytes, Union[GradingResult, Dict[str, Any]]]],
        instructor: Optional[InstructorSettings] = None,
    ) -> bytes:
        """Annotate many documents concurrently and return them as a ZIP.

        Each item is ``(filename, data, result)``. Items whose format cannot
        be identified are skipped.
        """
        items = list(items)
        batch = self.config.batch

        def work(item):
            filename, data, result = item
            try:
                return filename, self.annotate(data, filename, result, instructor, filename)
            except UnsupportedFormatError as e:
                logger.log_warning(f"Skipping {filename}: {e.message}")
                return filename, None

        with ThreadPoolExecutor(max_workers=batch.max_workers) as executor:
            outcomes = list(executor.map(work, items))

        buffer = BytesIO()
        used_names = set()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for filename, annotation in outcomes:
                if annotation is None:
                    continue
                arcname = self._unique_name(
                    f"{batch.folder_name}/{self.output_filename(filename, annotation.output_format)}",
                    used_names,
                )
                archive.writestr(arcname, annotation.output_bytes)

        written = sum(1 for _, a in outcomes if a is not None)
        logger.info(f"Batch annotation packaged {written} of {len(items)} document(s)")
        logger.log_performance()
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self, codec, data: bytes, fmt: DocumentFormat, name: str,
             result: Union[GradingResult, Dict[str, Any]],
             instructor: Optional[InstructorSettings]) -> AnnotationResult:
        model = None
        serialized = False
        score_text = self._safe_score_text(result)
        try:
            if isinstance(result, dict):
                result = GradingResult.from_dict(result)
            score_text = self.config.format_score(result.display_score)
            model = codec.parse(data)
            outcome = self._annotate_model(model, name, result, score_text, instructor)
            serialized = True
            output = codec.serialize(model)
            return AnnotationResult(
                output,
                fmt.extension,
                modifications=outcome.applied,
                placeholders=outcome.placeholders,
                used_fallback=outcome.used_fallback,
                warnings=outcome.warnings,
            )
        except PartialMutationError as e:
            logger.log_warning("Returning partially annotated document",
                               {"file": name, "applied": e.applied, "failed": e.failed})
            try:
                serialized = True
                output = codec.serialize(model)
            except Exception as serialize_error:
                return self._standalone_report(data, fmt, name, result, score_text,
                                               instructor, serialize_error)
            return AnnotationResult(
                output,
                fmt.extension,
                modifications=e.applied,
                placeholders=e.applied + e.failed,
                error=e.message,
                warnings=[f"{e.error_code.value}: {e.message}"],
            )
        except Exception as e:
            logger.log_error_with_context(e, {"file": name, "format": fmt.value, "stage": "annotate"})
            return self._standalone_report(data, fmt, name, result, score_text, instructor, e)
        finally:
            if model is not None and not serialized:
                codec.close(model)

    def _safe_score_text(self, result: Union[GradingResult, Dict[str, Any]]) -> str:
        """Score text for a report when the result itself cannot be used."""
        raw = result.get("score") if isinstance(result, dict) else getattr(result, "score", None)
        return self.config.format_score("N/A" if raw is None else str(raw))

    def _annotate_model(self, model, name: str, result: GradingResult, score_text: str,
                        instructor: Optional[InstructorSettings]) -> _Outcome:
        categories = list(CATEGORY_ORDER)
        if not (instructor and instructor.enabled):
            categories.remove(Category.SIGNATURE)
        contents = self.build_contents(result, score_text, instructor)

        if isinstance(model, GeometricModel):
            outcome = self._annotate_geometric(model, categories, contents)
        elif isinstance(model, StructuralModel):
            outcome = self._annotate_structural(model, categories, contents)
        else:
            raise TypeError(f"Unsupported model type: {type(model).__name__}")

        logger.log_metric("placeholders_located", outcome.placeholders)
        if outcome.applied == 0:
            logger.info(f"No placeholders written in {name}; appending grading report")
            self.fallback.append_to(model, name, result, score_text, instructor)
            outcome.used_fallback = True
        return outcome

    def _annotate_structural(self, model: StructuralModel, categories: Sequence[Category],
                             contents: Dict[Category, AnnotationContent]) -> _Outcome:
        pending_text = {category: content.text for category, content in contents.items()}
        matches = self.structural_locator.locate(model, categories, pending_text)
        writes = [(m, self.renderer.render_structured(contents[m.category])) for m in matches]
        applied = self.mutator.apply_structural(model, writes)
        return _Outcome(placeholders=len(matches), applied=applied)

    def _annotate_geometric(self, model: GeometricModel, categories: Sequence[Category],
                            contents: Dict[Category, AnnotationContent]) -> _Outcome:
        regions = self.geometric_locator.locate(model, categories)
        planner = LayoutPlanner(self.config.layout, regions)
        outcome = _Outcome(placeholders=len(regions))

        draws = []
        for region in regions:
            page_size = model.page_size(region.page_index)
            frame = planner.frame(region, page_size)
            try:
                rendered = self.renderer.render_geometric(contents[region.category], frame.max_width)
            except RasterizationError as e:
                logger.log_metric("skipped_regions")
                logger.log_warning(f"Skipping {region.category.value} region: {e.message}",
                                   {"page": region.page_index, "keyword": region.match.keyword})
                outcome.warnings.append(f"{e.error_code.value}: {e.message}")
                continue
            planned = planner.place(region, frame, page_size, rendered.width, rendered.height)
            draws.append((planned, rendered))

        outcome.applied = self.mutator.apply_geometric(model, draws)
        return outcome

    def build_contents(self, result: GradingResult, score_text: str,
                       instructor: Optional[InstructorSettings] = None) -> Dict[Category, AnnotationContent]:
        """Content for each category from a grading result."""
        render = self.config.render
        contents = {
            Category.SCORE: AnnotationContent(Category.SCORE, score_text, render.score_color),
            Category.COMMENT: AnnotationContent(
                Category.COMMENT,
                (result.teacher_comment or "").strip() or EMPTY_COMMENT,
                render.comment_color,
            ),
        }
        if instructor and instructor.enabled:
            contents[Category.SIGNATURE] = AnnotationContent(
                Category.SIGNATURE,
                instructor.name or self.config.fallback.default_signer,
                render.signature_color,
                artistic=instructor.artistic,
                image=instructor.image_bytes(),
            )
        return contents

    def _standalone_report(self, data: bytes, fmt: DocumentFormat, name: str,
                           result: Union[GradingResult, Dict[str, Any]], score_text: str,
                           instructor: Optional[InstructorSettings],
                           error: Exception) -> AnnotationResult:
        try:
            if not isinstance(result, GradingResult):
                # The result itself failed validation; report its text fields only.
                result = GradingResult(
                    score=0,
                    teacher_comment=str(result.get("teacher_comment") or ""),
                    summary=str(result.get("summary") or ""),
                    letter_grade=str(result.get("letter_grade") or ""),
                )
            pdf = self.fallback.generate(name, result, score_text, instructor)
        except Exception as report_error:
            logger.log_error_with_context(report_error, {"file": name, "stage": "fallback_report"})
            return AnnotationResult(data, fmt.extension, used_fallback=True, error=str(error))
        return AnnotationResult(pdf, DocumentFormat.PDF.extension, used_fallback=True, error=str(error))

    @staticmethod
    def _unique_name(name: str, used: set) -> str:
        candidate, counter = name, 1
        stem, dot, ext = name.rpartition(".")
        while candidate in used:
            counter += 1
            candidate = f"{stem}_{counter}{dot}{ext}"
        used.add(candidate)
        return candidate


_default_service: Optional[AnnotationService] = None


def get_annotation_service() -> AnnotationService:
    """Shared service built from the process configuration."""
    global _default_service
    if _default_service is None:
        _default_service = AnnotationService()
    return _default_service


def annotate(
    document_bytes: bytes,
    format_hint: Optional[str],
    result: Union[GradingResult, Dict[str, Any]],
    instructor: Optional[InstructorSettings] = None,
    filename: Optional[str] = None,
) -> Tuple[bytes, str]:
    """Annotate a document and return ``(output_bytes, output_format)``."""
    annotation = get_annotation_service().annotate(
        document_bytes, format_hint, result, instructor, filename
    )
    return annotation.output_bytes, annotation.output_format
