"""
Keyword index for placeholder labels.

Keywords are grouped per category and ordered longest first, so that a
composite label such as "Teacher Comments" is tested before "Comments".
Matching is literal, case-sensitive substring containment.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from grade_annotator.config import KeywordConfig
from grade_annotator.models import Category

CATEGORY_ORDER = (Category.SCORE, Category.COMMENT, Category.SIGNATURE)
LABEL_SUFFIXES = ("", ":", "：")


def _ordered(words: Iterable[str]) -> Tuple[str, ...]:
    unique = []
    for word in words:
        word = (word or "").strip()
        if word and word not in unique:
            unique.append(word)
    # sorted() is stable so equal-length keywords keep their configured order
    return tuple(sorted(unique, key=len, reverse=True))


class KeywordIndex:
    """Immutable, priority-ordered keyword sets per category."""

    __slots__ = ("_keywords", "_entries")

    def __init__(self, keywords: Dict[Category, Iterable[str]]):
        ordered = {category: _ordered(keywords.get(category, ())) for category in CATEGORY_ORDER}
        entries = [
            (category, word)
            for category in CATEGORY_ORDER
            for word in ordered[category]
        ]
        entries.sort(key=lambda e: (-len(e[1]), CATEGORY_ORDER.index(e[0])))
        object.__setattr__(self, "_keywords", ordered)
        object.__setattr__(self, "_entries", tuple(entries))

    def __setattr__(self, name, value):
        raise AttributeError("KeywordIndex is immutable")

    @classmethod
    def from_config(cls, config: KeywordConfig) -> "KeywordIndex":
        return cls({
            Category.SCORE: config.score,
            Category.COMMENT: config.comment,
            Category.SIGNATURE: config.signature,
        })

    @classmethod
    def default(cls) -> "KeywordIndex":
        return cls.from_config(KeywordConfig())

    def keywords(self, category: Category) -> Tuple[str, ...]:
        return self._keywords[category]

    def entries(self, categories: Optional[Sequence[Category]] = None) -> List[Tuple[Category, str]]:
        """All (category, keyword) pairs, longest keyword first across categories."""
        if categories is None:
            return list(self._entries)
        return [entry for entry in self._entries if entry[0] in categories]

    def match(self, text: str, categories: Optional[Sequence[Category]] = None) -> Optional[Tuple[Category, str]]:
        """Most specific keyword contained in ``text``."""
        if not text:
            return None
        for category, word in self.entries(categories):
            if word in text:
                return category, word
        return None

    def match_label(self, text: str, categories: Optional[Sequence[Category]] = None) -> Optional[Tuple[Category, str]]:
        """Keyword that ``text`` consists of, optionally followed by a colon."""
        if not text:
            return None
        stripped = text.strip()
        for category, word in self.entries(categories):
            if any(stripped == word + suffix for suffix in LABEL_SUFFIXES):
                return category, word
        return None

    def __repr__(self) -> str:
        counts = ", ".join(f"{c.value}={len(self._keywords[c])}" for c in CATEGORY_ORDER)
        return f"KeywordIndex({counts})"
