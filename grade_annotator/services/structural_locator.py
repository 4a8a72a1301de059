"""
Placeholder location for grid and paragraph shaped documents.

Two passes run over the model's node arena:

1. Cells. A cell whose text contains a keyword is a label; its next sibling
   cell is the target.
2. Paragraphs, only for categories still unresolved. A body paragraph that
   *is* a keyword (optionally followed by a colon) targets the paragraph
   right after it, provided that paragraph is short or already holds the
   text about to be written.

Every label and target is consumed once claimed, so a region serves at most
one category.
"""

from typing import Dict, List, Optional, Sequence, Set

from grade_annotator.config import LocatorConfig
from grade_annotator.models import Category, PlaceholderMatch
from grade_annotator.parsing import StructuralModel, StructuralNode
from grade_annotator.utils.logger import logger

from .keyword_index import CATEGORY_ORDER, KeywordIndex


class StructuralLocator:
    """Finds placeholder targets in a :class:`StructuralModel`."""

    def __init__(self, keyword_index: KeywordIndex, config: Optional[LocatorConfig] = None):
        self.keyword_index = keyword_index
        self.config = config or LocatorConfig()

    def locate(self, model: StructuralModel,
               categories: Sequence[Category] = CATEGORY_ORDER,
               pending_text: Optional[Dict[Category, str]] = None) -> List[PlaceholderMatch]:
        """Return one match per resolved target, in document order of labels.

        ``pending_text`` maps a category to the text that will be written,
        so a paragraph slot filled by an earlier run is found again.
        """
        consumed: Set[int] = set()
        matches = self._locate_cells(model, categories, consumed)

        resolved = {m.category for m in matches}
        remaining = [c for c in categories if c not in resolved]
        if remaining:
            matches.extend(self._locate_paragraphs(model, remaining, consumed, pending_text or {}))

        logger.debug(
            f"Structural locator found {len(matches)} placeholder(s) "
            f"in {model.document_format.value}"
        )
        return matches

    def looks_like_label(self, node: StructuralNode) -> bool:
        """A short node containing a keyword is another label, not a slot."""
        text = node.text.strip()
        return (
            len(text) < self.config.short_slot_threshold
            and self.keyword_index.match(text) is not None
        )

    def _locate_cells(self, model: StructuralModel, categories: Sequence[Category],
                      consumed: Set[int]) -> List[PlaceholderMatch]:
        matches = []
        for cell in model.cells():
            if cell.index in consumed:
                continue
            hit = self.keyword_index.match(cell.text, categories)
            if hit is None:
                continue
            category, keyword = hit
            consumed.add(cell.index)

            target = model.next_sibling(cell)
            if target is None or target.index in consumed or self.looks_like_label(target):
                logger.debug(f"No writable cell after '{keyword}' label")
                continue

            consumed.add(target.index)
            matches.append(PlaceholderMatch(
                category=category,
                keyword=keyword,
                node_index=target.index,
                label_index=cell.index,
            ))
        return matches

    def _locate_paragraphs(self, model: StructuralModel, categories: Sequence[Category],
                           consumed: Set[int],
                           pending_text: Dict[Category, str]) -> List[PlaceholderMatch]:
        matches = []
        pending = list(categories)
        for paragraph in model.paragraphs():
            if not pending:
                break
            if paragraph.index in consumed:
                continue
            hit = self.keyword_index.match_label(paragraph.text, pending)
            if hit is None:
                continue
            category, keyword = hit

            target = model.next_sibling(paragraph)
            if target is None or target.index in consumed:
                continue
            slot = target.text.strip()
            refill = bool(slot) and slot == pending_text.get(category, "").strip()
            if not refill and self.looks_like_label(target):
                continue
            # Heuristic: only a short paragraph is treated as a blank slot.
            if not refill and len(slot) >= self.config.short_slot_threshold:
                logger.debug(f"Paragraph after '{keyword}' looks like body text; skipped")
                continue

            consumed.update((paragraph.index, target.index))
            pending.remove(category)
            matches.append(PlaceholderMatch(
                category=category,
                keyword=keyword,
                node_index=target.index,
                label_index=paragraph.index,
            ))
        return matches
