"""Classification-code (BISAC) to category lookup."""
from typing import Dict, Iterable
import logging

from onix_catalog.models import Categories, ClassificationRow

logger = logging.getLogger(__name__)

CATEGORY_SEPARATOR = "/ "
SECONDARY_JOINER = " / "

NO_MATCH = Categories()


class ClassificationTable:
    """Immutable index of classification rows keyed by lower-cased code."""

    def __init__(self, rows: Iterable[ClassificationRow]):
        index: Dict[str, ClassificationRow] = {}
        for row in rows:
            if not row.code:
                continue
            # First occurrence wins on repeated codes
            index.setdefault(row.code.lower(), row)
        self._index = index
        logger.info(f"Loaded {len(index)} classification codes")

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, code: str) -> bool:
        return bool(code) and code.lower() in self._index

    def lookup(self, code: str) -> Categories:
        """
        Resolve a code to its category hierarchy.

        Args:
            code: Classification code, matched case-insensitively

        Returns:
            Categories; all fields empty when the code is unknown
        """
        if not code:
            return NO_MATCH

        row = self._index.get(code.lower())
        if row is None:
            return NO_MATCH

        segments = [segment.strip() for segment in row.category_path.strip().split(CATEGORY_SEPARATOR)]
        return Categories(
            primary=segments[0],
            secondary=SECONDARY_JOINER.join(segments[1:]),
            custom_tag=row.custom_category or ""
        )
