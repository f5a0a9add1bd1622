from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from shelfkeeper.app import export_library, import_file, import_remote, migrate_file, open_library
from shelfkeeper.config import configure_logging, get_link_config
from shelfkeeper.domain.errors import DuplicateIdentifierError, NotFoundError
from shelfkeeper.domain.links import book_link
from shelfkeeper.domain.model import UNSET, ReadStatus
from shelfkeeper.domain.reconciliation import MergePolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from shelfkeeper.domain.library_service import LibraryService
    from shelfkeeper.domain.reconciliation import ImportResult

log = logging.getLogger(__name__)

# Rejected requests exit with 2, like argument errors
_REJECTED_REQUESTS = (ValueError, DuplicateIdentifierError, NotFoundError)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage a personal book library")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_cmd = subparsers.add_parser("import", help="Import a JSON list of records")
    import_cmd.add_argument("file", type=Path, help="Path to the bulk import JSON file")
    import_cmd.add_argument(
        "--insert-only",
        action="store_true",
        help="Never update existing records; report them as duplicates instead",
    )

    subparsers.add_parser(
        "import-remote",
        help="Import records from SHELFKEEPER_BULK_IMPORT_URL",
    )

    migrate = subparsers.add_parser("migrate", help="Replace the library with a JSON file")
    migrate.add_argument("file", type=Path, help="Path to the bulk import JSON file")

    add = subparsers.add_parser("add", help="Add a book by hand")
    add.add_argument("--id", dest="book_id", required=True, help="Book identifier")
    add.add_argument("--title", help="Book title")
    add.add_argument("--authors", help="Authors, comma separated")
    add.add_argument("--read", action="store_true", help="Mark the book as read")

    add_link = subparsers.add_parser("add-link", help="Add a book from a marketplace link")
    add_link.add_argument("url", help="Marketplace product URL")

    add_catalog = subparsers.add_parser(
        "add-catalog",
        help="Add a book from a Google Books link or volume id",
    )
    add_catalog.add_argument("url_or_id", help="Google Books URL or volume id")

    update = subparsers.add_parser("update", help="Change fields of a book")
    update.add_argument("book_id", help="Book identifier")
    update.add_argument("--title", help="New title")
    update.add_argument("--authors", help="New authors")
    status = update.add_mutually_exclusive_group()
    status.add_argument("--read", dest="read", action="store_true", default=None)
    status.add_argument("--unread", dest="read", action="store_false")
    update.add_argument("--memo", help="Replace the memo")
    update.add_argument("--clear-memo", action="store_true", help="Remove the memo")
    update.add_argument("--rating", type=float, help="Numeric rating")
    update.add_argument("--superseding-id", help="Identifier that replaces this one for links")

    delete = subparsers.add_parser("delete", help="Delete a book")
    delete.add_argument("book_id", help="Book identifier")
    delete.add_argument("--hard", action="store_true", help="Remove the record for good")

    clear = subparsers.add_parser("clear", help="Remove every book")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing the library")

    search = subparsers.add_parser("search", help="Search titles and authors")
    search.add_argument("query", help="Case-insensitive substring")

    subparsers.add_parser("stats", help="Show library statistics")

    export = subparsers.add_parser("export", help="Write the library snapshot to a JSON file")
    export.add_argument(
        "path",
        type=Path,
        nargs="?",
        help="Destination file (defaults to the data directory)",
    )

    return parser.parse_args(list(argv))


def _build_changes(args: argparse.Namespace) -> dict[str, object]:
    if args.memo is not None and args.clear_memo:
        raise ValueError("Use either --memo or --clear-memo, not both")

    changes: dict[str, object] = {}
    if args.title is not None:
        changes["title"] = args.title
    if args.authors is not None:
        changes["authors"] = args.authors
    if args.read is not None:
        changes["read_status"] = ReadStatus.READ if args.read else ReadStatus.UNKNOWN
    if args.memo is not None:
        changes["memo"] = args.memo
    if args.clear_memo:
        changes["memo"] = UNSET
    if args.rating is not None:
        changes["rating"] = int(args.rating) if args.rating.is_integer() else args.rating
    if args.superseding_id is not None:
        changes["superseding_id"] = args.superseding_id.strip() or UNSET

    if not changes:
        raise ValueError("Nothing to update; pass at least one field option")
    return changes


def _validate(args: argparse.Namespace) -> dict[str, object] | None:
    if args.command == "update":
        return _build_changes(args)
    if args.command == "clear" and not args.yes:
        raise ValueError("Refusing to clear the library without --yes")
    return None


def _log_import(result: ImportResult) -> None:
    log.info(
        "Import finished (%s): total=%s, added=%s, updated=%s, skipped=%s, "
        "duplicate=%s, error=%s",
        result.policy,
        result.total,
        result.added,
        result.updated,
        result.skipped,
        result.duplicate,
        result.error,
    )
    for entry in result.errors:
        log.warning("Not imported: %s (%s): %s", entry.book_id, entry.title, entry.reason)


def _run(
    args: argparse.Namespace,
    service: LibraryService,
    changes: dict[str, object] | None,
) -> None:
    command = args.command
    if command == "import":
        policy = MergePolicy.INSERT_ONLY if args.insert_only else MergePolicy.MERGE_WITH_UPDATE
        _log_import(import_file(service, args.file, policy=policy))
    elif command == "import-remote":
        _log_import(import_remote(service))
    elif command == "migrate":
        _log_import(migrate_file(service, args.file))
    elif command == "add":
        raw: dict[str, object] = {
            "id": args.book_id,
            "title": args.title,
            "authors": args.authors,
        }
        if args.read:
            raw["readStatus"] = ReadStatus.READ.value
        book = service.add_manually(raw)
        log.info("Added %s: %s", book.id, book.title)
    elif command == "add-link":
        book = service.add_from_marketplace_link(args.url)
        log.info("Added %s: %s", book.id, book.title or "(no title found)")
    elif command == "add-catalog":
        book = service.add_from_catalog(args.url_or_id)
        log.info("Added %s: %s", book.id, book.title or "(no title found)")
    elif command == "update":
        book = service.update_book(args.book_id, changes or {})
        log.info("Updated %s", book.id)
    elif command == "delete":
        service.delete_book(args.book_id, hard_delete=args.hard)
    elif command == "clear":
        service.clear_all()
    elif command == "search":
        _log_search(service, args.query)
    elif command == "stats":
        stats = service.statistics()
        log.info(
            "Books: %s (read %s, unread %s); manual %s, bulk %s, catalog %s; last import %s",
            stats.total,
            stats.read,
            stats.unread,
            stats.manually_added,
            stats.imported_from_bulk,
            stats.from_catalog,
            stats.last_import_date,
        )
    elif command == "export":
        path = export_library(service, args.path)
        log.info("Exported %s books to %s", len(service.books), path)
    else:
        raise ValueError(f"Unsupported command: {command}")


def _log_search(service: LibraryService, query: str) -> None:
    affiliate_tag = get_link_config().affiliate_tag
    matches = service.search(query)
    log.info("%s books match %r", len(matches), query)
    for book in matches:
        link = book_link(book, affiliate_tag)
        log.info(
            "%s | %s | %s | %s",
            book.id,
            book.title,
            book.authors,
            link.url if link else "-",
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        changes = _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        service = open_library()
        _run(parsed_args, service, changes)
    except _REJECTED_REQUESTS:
        log.exception("Request rejected")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
