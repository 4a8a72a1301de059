"""
Applies rendered content to document models.

Structured writes are idempotent: the target node's children are cleared
before the new run is added, with the node's formatting descriptor detached
first and reattached afterwards. Geometric writes draw at the planned box
and trust the planner for collision handling.
"""

from typing import Sequence, Tuple

from grade_annotator.exceptions import PartialMutationError, ProcessingError
from grade_annotator.models import PlaceholderMatch, PlannedDraw
from grade_annotator.parsing import GeometricModel, NativeRun, StructuralModel
from grade_annotator.utils.logger import logger

from .content_renderer import RenderedContent, RenderMode


class DocumentMutator:
    """Writes annotation content into a parsed document."""

    def apply_structural(self, model: StructuralModel,
                         writes: Sequence[Tuple[PlaceholderMatch, NativeRun]]) -> int:
        """Write each run into its target node; returns the number applied.

        Raises:
            ProcessingError: if the first write fails
            PartialMutationError: if a later write fails after others succeeded
        """
        applied = 0
        for match, run in writes:
            try:
                self.write_node(model, match.node_index, run)
            except Exception as e:
                self._raise_failure(applied, len(writes), match, e)
            applied += 1
        return applied

    def write_node(self, model: StructuralModel, node_index: int, run: NativeRun) -> None:
        node = model.materialize(model.node(node_index))
        descriptor = model.detach_formatting(node)
        model.clear_children(node)
        model.attach_formatting(node, descriptor)
        model.append_run(node, run)

    def apply_geometric(self, model: GeometricModel,
                        draws: Sequence[Tuple[PlannedDraw, RenderedContent]]) -> int:
        """Draw each rendered item at its planned box; returns the number applied."""
        applied = 0
        for planned, rendered in draws:
            try:
                self.draw(model, planned, rendered)
            except Exception as e:
                self._raise_failure(applied, len(draws), planned.region.match, e)
            applied += 1
        return applied

    def draw(self, model: GeometricModel, planned: PlannedDraw, rendered: RenderedContent) -> None:
        page_index = planned.region.page_index
        if rendered.mode is RenderMode.RASTER:
            model.draw_image(page_index, planned.box, rendered.png)
        else:
            model.draw_text(page_index, planned.box, rendered.lines,
                            rendered.font_size, rendered.color)

    def _raise_failure(self, applied: int, total: int, match: PlaceholderMatch,
                       error: Exception) -> None:
        message = f"Failed to write {match.category.value} placeholder '{match.keyword}': {error}"
        if applied:
            logger.warning(f"{message} ({applied} of {total} already applied)")
            raise PartialMutationError(
                message, applied=applied, failed=total - applied, original_error=error
            ) from error
        raise ProcessingError(message, operation="mutate", original_error=error) from error
