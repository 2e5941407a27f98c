"""Spreadsheet input and output."""
from pathlib import Path
from zipfile import BadZipFile
from typing import Dict, List, Sequence, Union
import logging

import pandas as pd
from openpyxl.utils import get_column_letter

from onix_catalog.models import (
    SELECTION_COLUMN,
    ClassificationRow,
    NormalizedBook,
    SubjectPhraseRule,
)

logger = logging.getLogger(__name__)

CODE_COLUMN = "BISAC Code"
CATEGORY_COLUMN = "Category"
CUSTOM_CATEGORY_COLUMN = "Custom Category"
ISBN_COLUMN = "isbn"

OUTPUT_COLUMNS = [
    "isbn", "title", "subtitle", "contributors", "imprint", "pubDate",
    "onSaleDate", "usPrice", "caPrice", "runtime", "BISAC", "language",
    "primaryCategory", "secondaryCategories", "customCategory", SELECTION_COLUMN,
]

# ~150px at the default font
COLUMN_WIDTH = 21


def _normalize_header(name) -> str:
    """Collapse runs of whitespace ("BISAC  Code" -> "BISAC Code")."""
    return " ".join(str(name).split())


def _read_sheet(path: Union[str, Path], sheet_name: str, **kwargs) -> pd.DataFrame:
    try:
        frame = pd.read_excel(path, sheet_name=sheet_name, dtype=str, **kwargs)
    except ValueError as e:
        raise ValueError(f"Sheet {sheet_name!r} not readable in {path}: {e}") from e
    return frame.fillna("")


def read_classification_rows(path: Union[str, Path], sheet_name: str) -> List[ClassificationRow]:
    """
    Read the code-to-category sheet.

    Args:
        path: Workbook path
        sheet_name: Sheet holding code, category path and custom category

    Returns:
        Rows in sheet order
    """
    frame = _read_sheet(path, sheet_name)
    frame.columns = [_normalize_header(column) for column in frame.columns]

    missing = [column for column in (CODE_COLUMN, CATEGORY_COLUMN) if column not in frame.columns]
    if missing:
        raise ValueError(f"Sheet {sheet_name!r} in {path} is missing columns: {', '.join(missing)}")

    has_custom = CUSTOM_CATEGORY_COLUMN in frame.columns
    rows = [
        ClassificationRow(
            code=record[CODE_COLUMN].strip(),
            category_path=record[CATEGORY_COLUMN],
            custom_category=record[CUSTOM_CATEGORY_COLUMN].strip() if has_custom else ""
        )
        for record in frame.to_dict("records")
    ]
    logger.info(f"Read {len(rows)} classification rows from {sheet_name!r}")
    return rows


def read_subject_rules(path: Union[str, Path], sheet_name: str) -> List[SubjectPhraseRule]:
    """
    Read the subject-heading sheet: phrase in column A, tag in column B.

    The first row is a header and is discarded.
    """
    frame = _read_sheet(path, sheet_name, header=None)
    if frame.shape[1] < 2:
        raise ValueError(f"Sheet {sheet_name!r} in {path} needs a phrase and a tag column")

    rules = [
        SubjectPhraseRule(phrase=str(phrase), tag=str(tag).strip())
        for phrase, tag in frame.iloc[1:, :2].itertuples(index=False, name=None)
    ]
    logger.info(f"Read {len(rules)} subject phrase rules from {sheet_name!r}")
    return rules


def read_prior_selections(path: Union[str, Path], sheet_name: str) -> Dict[str, str]:
    """
    Collect user selection markers from a previous output workbook.

    Returns:
        ISBN -> marker for every row with a non-blank marker; empty when the
        workbook is absent or unreadable
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"No previous output at {path}; starting without selections")
        return {}

    try:
        frame = _read_sheet(path, sheet_name)
    except (ValueError, OSError, KeyError, BadZipFile) as e:
        logger.warning(f"Ignoring unreadable previous output {path}: {e}")
        return {}

    if ISBN_COLUMN not in frame.columns or SELECTION_COLUMN not in frame.columns:
        logger.warning(f"Previous output {path} has no {SELECTION_COLUMN!r} column")
        return {}

    selections = {}
    for isbn, marker in zip(frame[ISBN_COLUMN], frame[SELECTION_COLUMN]):
        if isbn.strip() and marker.strip():
            selections[isbn.strip()] = marker.strip()

    logger.info(f"Found {len(selections)} selected books in {path}")
    return selections


def books_to_frame(books: Sequence[NormalizedBook]) -> pd.DataFrame:
    rows = [book.model_dump(by_alias=True) for book in books]
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS).fillna("")


def write_catalog(books: Sequence[NormalizedBook], path: Union[str, Path], sheet_name: str) -> Path:
    """
    Write normalized books to a single-sheet workbook.

    The selection column is always present so users can mark rows.

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = books_to_frame(books)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
        sheet = writer.sheets[sheet_name]
        for index in range(1, len(OUTPUT_COLUMNS) + 1):
            sheet.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTH

    logger.info(f"File Created: {path} ({len(books)} books)")
    return path
