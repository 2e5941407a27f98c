"""Carry user selections forward and rebuild per-ISBN state."""
from typing import Dict, List
import logging

from onix_catalog.models import SELECTED_MARKER, NormalizedBook, PersistedBookState, RawProductRecord
from onix_catalog.state import PriorState

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Merge freshly normalized books with the previous run.

    Books must be merged in discovery order: when two records share an ISBN
    the later one owns the state entry.
    """

    def __init__(self, prior: PriorState):
        self.prior = prior
        self.state: Dict[str, PersistedBookState] = {}

    def merge(self, book: NormalizedBook, record: RawProductRecord) -> NormalizedBook:
        """
        Apply the prior selection marker and record the book's origin.

        Args:
            book: Validated book
            record: The raw record it came from

        Returns:
            Copy of ``book`` with ``selected`` set to "x" or ""
        """
        marker = SELECTED_MARKER if self.prior.is_selected(book.isbn) else ""

        if book.isbn in self.state:
            logger.debug(f"ISBN {book.isbn} seen again in {record.origin_file_name}; later record wins")

        self.state[book.isbn] = PersistedBookState(
            origin_file_path=record.origin_file_path,
            origin_file_name=record.origin_file_name,
            detected_version=record.major_version,
            selected=marker
        )
        return book.model_copy(update={"selected": marker})

    def dropped_isbns(self) -> List[str]:
        """ISBNs present last run but not in this one."""
        return [isbn for isbn in self.prior.books if isbn not in self.state]
