#!/usr/bin/env python3
"""ONIX Catalog CLI - normalize publisher feeds into a spreadsheet."""
import argparse
import asyncio
import sys
import json
from collections import Counter
from tabulate import tabulate
from onix_catalog.classification import ClassificationTable
from onix_catalog.config import Config
from onix_catalog.pipeline import CatalogPipeline, discover_documents
from onix_catalog.state import StateRepository, load_prior_state
from onix_catalog.subjects import SubjectPhraseMatcher
from onix_catalog.workbook import read_classification_rows, read_subject_rules, write_catalog
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_reference_tables(args):
    """Build the classification table and phrase matcher once per run."""
    classifications = ClassificationTable(
        read_classification_rows(args.workbook, args.classification_sheet)
    )
    matcher = SubjectPhraseMatcher(
        read_subject_rules(args.workbook, args.subject_sheet)
    )
    return classifications, matcher


def truncate(value, width: int) -> str:
    value = value or ""
    return value[:width] + "..." if len(value) > width else value


def parse_feeds(args, config: Config):
    """Normalize every document under the metadata directory."""
    classifications, matcher = load_reference_tables(args)

    repository = StateRepository(args.state)
    prior = load_prior_state(repository, args.output, config.OUTPUT_SHEET)

    paths = discover_documents(args.source_dir)
    logger.info(f"Found {len(paths)} documents under {args.source_dir}")
    logger.info(f"Parallel reads: {args.parallel}")

    pipeline = CatalogPipeline(
        classifications,
        matcher,
        repository,
        prior=prior,
        max_concurrent=args.parallel
    )
    result = asyncio.run(pipeline.run(paths))

    if not result.books:
        logger.warning("No books normalized; writing an empty catalog to match the state file")
    write_catalog(result.books, args.output, config.OUTPUT_SHEET)

    display_books(result.books, args.format)

    if result.failures:
        print(f"\n{len(result.failures)} record(s) failed validation:")
        for failure in result.failures:
            print(f"  - {failure}")

    if result.document_errors:
        print(f"\n{len(result.document_errors)} document(s) could not be read:")
        for error in result.document_errors:
            print(f"  - {error}")

    print("\n" + tabulate(result.summary().items(), headers=["Metric", "Count"], tablefmt="simple"))


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ISBN", "Title", "Contributors", "On Sale", "BISAC", "Category", "Sel"]
        rows = [
            [
                book.isbn,
                truncate(book.title, 40),
                truncate(book.contributors, 30),
                book.on_sale_date,
                book.classification_code,
                truncate(book.primary_category, 20),
                book.selected
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        books_dict = [book.model_dump(by_alias=True) for book in books]
        print(json.dumps(books_dict, indent=2, ensure_ascii=False))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.isbn} {book.title} - {book.contributors or 'Unknown'}")


def lookup_code(args, config: Config):
    """Show what a classification code and optional text resolve to."""
    classifications, matcher = load_reference_tables(args)

    categories = classifications.lookup(args.code)
    rows = [
        ["Code", args.code],
        ["Known", "yes" if args.code in classifications else "no"],
        ["Primary", categories.primary],
        ["Secondary", categories.secondary],
        ["Custom tag", categories.custom_tag],
    ]
    if args.text:
        rows.append(["Phrase tags", matcher.match(args.text)])
    rows.append(["Table size", f"{len(classifications)} codes, {len(matcher)} phrase rules"])

    print("\n" + tabulate(rows, tablefmt="grid"))


def show_state(args, config: Config):
    """Show persisted state statistics."""
    state = StateRepository(args.state).load()

    versions = Counter(entry.detected_version for entry in state.values())
    files = {entry.origin_file_path for entry in state.values()}
    selected = sum(1 for entry in state.values() if entry.selected)

    print("\n" + "=" * 50)
    print("CATALOG STATE")
    print("=" * 50)
    print(f"Books tracked: {len(state)}")
    print(f"Selected to collect: {selected}")
    print(f"Source documents: {len(files)}")
    for version, count in sorted(versions.items()):
        print(f"ONIX {version}.x books: {count}")
    print("=" * 50 + "\n")


def add_workbook_arguments(parser, config: Config):
    parser.add_argument("--workbook", default=config.CLASSIFICATION_WORKBOOK, help="Classification workbook")
    parser.add_argument("--classification-sheet", default=config.CLASSIFICATION_SHEET, help="Code-to-category sheet")
    parser.add_argument("--subject-sheet", default=config.SUBJECT_HEADING_SHEET, help="Subject phrase sheet")


def main():
    """Main CLI entry point."""
    config = Config()

    parser = argparse.ArgumentParser(
        description="ONIX Catalog - normalize publisher metadata into a spreadsheet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Parse all feeds with defaults
  %(prog)s parse

  # Parse a different feed directory with more parallel reads
  %(prog)s parse --source-dir feeds --parallel 10 --format compact

  # Check a BISAC code and a subject phrase
  %(prog)s lookup FIC022000 --text "A gripping Mystery"

  # Show persisted state
  %(prog)s state
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Normalize ONIX documents")
    parse_parser.add_argument("--source-dir", default=config.ONIX_METADATA_DIR, help="Directory of publisher folders")
    parse_parser.add_argument("--output", default=config.OUTPUT_PATH, help="Output workbook")
    parse_parser.add_argument("--state", default=config.STATE_PATH, help="State file")
    parse_parser.add_argument("--parallel", type=int, default=config.MAX_CONCURRENT_DOCUMENTS, help="Concurrent document reads")
    parse_parser.add_argument("--format", choices=["table", "json", "compact", "none"], default="none", help="Console output format")
    add_workbook_arguments(parse_parser, config)

    # Lookup command
    lookup_parser = subparsers.add_parser("lookup", help="Resolve a classification code")
    lookup_parser.add_argument("code", help="BISAC code")
    lookup_parser.add_argument("--text", help="Subject text to match against phrase rules")
    add_workbook_arguments(lookup_parser, config)

    # State command
    state_parser = subparsers.add_parser("state", help="Show persisted state")
    state_parser.add_argument("--state", default=config.STATE_PATH, help="State file")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "parse":
            parse_feeds(args, config)

        elif args.command == "lookup":
            lookup_code(args, config)

        elif args.command == "state":
            show_state(args, config)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
