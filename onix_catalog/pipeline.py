"""Run ONIX documents through normalization and reconciliation."""
import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union
import logging

from onix_catalog.adapters import VersionAdapter, adapter_for, build_adapters
from onix_catalog.classification import ClassificationTable
from onix_catalog.document import DocumentParseError, SourceDocument, parse_document
from onix_catalog.models import NormalizedBook, PersistedBookState, RawProductRecord, ValidationFailure
from onix_catalog.reconcile import Reconciler
from onix_catalog.state import PriorState, StateRepository
from onix_catalog.subjects import SubjectPhraseMatcher

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".xml"
# Single-product files without a release attribute are ONIX 2.1 feeds
SINGLE_PRODUCT_DEFAULT_RELEASE = 2.1
UNKNOWN_RELEASE = 0.0

_RELEASE_PATTERN = re.compile(r"\s*(\d+(?:\.\d+)?)")


def parse_release(release: Optional[str], product_count: int) -> float:
    """
    Numeric release of a document.

    "3.0" -> 3.0, "2.1" -> 2.1. A missing attribute means 2.1 for a
    single-product document and 0 (unsupported) otherwise.
    """
    if release is None:
        return SINGLE_PRODUCT_DEFAULT_RELEASE if product_count == 1 else UNKNOWN_RELEASE
    match = _RELEASE_PATTERN.match(release)
    return float(match.group(1)) if match else UNKNOWN_RELEASE


def discover_documents(root_dir: Union[str, Path]) -> List[Path]:
    """
    List XML documents, one sub-directory per publisher.

    Directories and files are sorted so reruns see the same order.
    """
    root_dir = Path(root_dir)
    if not root_dir.is_dir():
        logger.warning(f"Metadata directory not found: {root_dir}")
        return []

    paths = []
    for source_dir in sorted(p for p in root_dir.iterdir() if p.is_dir()):
        files = sorted(
            p for p in source_dir.iterdir()
            if p.is_file() and p.suffix.lower() == DOCUMENT_SUFFIX
        )
        logger.info(f"{source_dir.name}: {len(files)} document(s)")
        paths.extend(files)
    return paths


def raw_records(document: SourceDocument) -> List[RawProductRecord]:
    """Split a document into per-product records sharing its release."""
    release = parse_release(document.release, len(document.products))
    return [
        RawProductRecord(
            release_version=release,
            product_node=product,
            origin_file_path=document.path,
            origin_file_name=document.file_name
        )
        for product in document.products
    ]


@dataclass
class RunResult:
    """Outcome of one pipeline run."""
    books: List[NormalizedBook] = field(default_factory=list)
    failures: List[ValidationFailure] = field(default_factory=list)
    document_errors: List[DocumentParseError] = field(default_factory=list)
    unsupported: int = 0
    state: Dict[str, PersistedBookState] = field(default_factory=dict)
    dropped_isbns: List[str] = field(default_factory=list)

    @property
    def selected_count(self) -> int:
        return sum(1 for book in self.books if book.is_selected)

    def summary(self) -> Dict[str, int]:
        return {
            "books": len(self.books),
            "selected": self.selected_count,
            "validation_failures": len(self.failures),
            "document_errors": len(self.document_errors),
            "unsupported_records": self.unsupported,
            "dropped_from_state": len(self.dropped_isbns),
        }


class CatalogPipeline:
    """Normalize discovered documents and reconcile them with the last run."""

    def __init__(
        self,
        classifications: ClassificationTable,
        subject_matcher: SubjectPhraseMatcher,
        repository: StateRepository,
        prior: Optional[PriorState] = None,
        max_concurrent: int = 5
    ):
        """
        Initialize pipeline.

        Args:
            classifications: Code-to-category table
            subject_matcher: Phrase rules for custom tags
            repository: Where state is written at the end of a run
            prior: Previous run's state and selections (empty if None)
            max_concurrent: Documents read in parallel
        """
        self.adapters: Tuple[VersionAdapter, ...] = build_adapters(classifications, subject_matcher)
        self.repository = repository
        self.prior = prior or PriorState()
        self.max_concurrent = max(1, max_concurrent)

    async def load_document(
        self,
        path: Path,
        semaphore: asyncio.Semaphore
    ) -> Union[SourceDocument, DocumentParseError]:
        """Parse one document off the event loop; failures are returned, not raised."""
        async with semaphore:
            try:
                return await asyncio.to_thread(parse_document, path)
            except DocumentParseError as e:
                return e

    async def load_documents(self, paths: Sequence[Path]) -> List[Union[SourceDocument, DocumentParseError]]:
        """Parse documents in parallel; results keep the order of ``paths``."""
        semaphore = asyncio.Semaphore(self.max_concurrent)
        tasks = [self.load_document(path, semaphore) for path in paths]
        return await asyncio.gather(*tasks)

    def normalize(self, record: RawProductRecord) -> Union[NormalizedBook, ValidationFailure, None]:
        """Dispatch to the adapter for the record's release; None if unsupported."""
        adapter = adapter_for(record.release_version, self.adapters)
        if adapter is None:
            logger.debug(
                f"Skipping release {record.release_version} product in {record.origin_file_name}"
            )
            return None
        return adapter.extract(record)

    async def run(self, paths: Sequence[Path]) -> RunResult:
        """
        Process documents and persist the rebuilt state.

        Args:
            paths: Documents in discovery order

        Returns:
            RunResult with books in discovery order
        """
        result = RunResult()
        reconciler = Reconciler(self.prior)

        documents = await self.load_documents(paths)

        # Merging stays sequential so duplicate ISBNs resolve by discovery order
        for document in documents:
            if isinstance(document, DocumentParseError):
                logger.error(f"Skipping document {document.path}: {document.reason}")
                result.document_errors.append(document)
                continue

            for record in raw_records(document):
                outcome = self.normalize(record)
                if outcome is None:
                    result.unsupported += 1
                elif isinstance(outcome, ValidationFailure):
                    logger.warning(f"Validation failed: {outcome}")
                    result.failures.append(outcome)
                else:
                    result.books.append(reconciler.merge(outcome, record))

        result.state = reconciler.state
        result.dropped_isbns = reconciler.dropped_isbns()
        if result.dropped_isbns:
            logger.info(f"{len(result.dropped_isbns)} ISBN(s) no longer present in sources")

        self.repository.save(result.state)

        logger.info(
            f"Normalized {len(result.books)} books "
            f"({len(result.failures)} failed validation, "
            f"{len(result.document_errors)} unreadable documents, "
            f"{result.unsupported} unsupported)"
        )
        return result
