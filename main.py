#!/usr/bin/env python3
"""
Main Data Import - contracts / shipments CSV loader
===================================================

Two-file mode (contracts declared up front, shipments reference them):

    python main.py --contracts-file Contracts.csv --shipments-file Shipments.csv [--dry-run]

Legacy single-file mode (contracts merged out of the shipments):

    python main.py --file Shipments.csv [--dry-run]

See config.py for all environment-variable tunables.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

import config
from db import init_db
from trade_import import (
    ImportAbortedError, TradeImportError, ValidationFailedError, run_import,
)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130

MAX_LISTED_FAILURES = 20


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="main-data-import",
        description="Import contracts and shipments from semicolon-delimited CSV exports.",
    )
    parser.add_argument("--contracts-file", metavar="PATH",
                        help="pending contracts export (two-file mode)")
    parser.add_argument("--shipments-file", metavar="PATH",
                        help="shipments export (two-file mode)")
    parser.add_argument("--file", metavar="PATH",
                        help="single shipments export (legacy mode)")
    parser.add_argument("--dry-run", action="store_true",
                        help="parse and preview only; nothing is written")
    parser.add_argument("--no-clear", dest="clear", action="store_false",
                        default=config.CLEAR_BEFORE_IMPORT,
                        help="keep existing contracts/shipments instead of clearing them first")
    parser.add_argument("--continue-on-error", action="store_true",
                        help="skip records that fail validation instead of aborting")
    parser.add_argument("--db-url", default=config.DB_URL,
                        help="database URL (default: IMPORT_DB_URL / DATABASE_URL)")
    parser.add_argument("--preview-limit", type=int, metavar="N",
                        help="records listed per section in the dry-run preview")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log progress at INFO level")
    return parser


def _validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    two_file = args.contracts_file is not None or args.shipments_file is not None
    if args.file and two_file:
        parser.error("use either --file or --contracts-file/--shipments-file, not both")
    if not args.file and not two_file:
        parser.error("an input is required: --contracts-file and --shipments-file, or --file")
    if two_file and not (args.contracts_file and args.shipments_file):
        parser.error("two-file mode needs both --contracts-file and --shipments-file")
    if args.preview_limit is not None and args.preview_limit < 1:
        parser.error("--preview-limit must be at least 1")


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(message: str) -> int:
    print(f"ERROR: {message}", file=sys.stderr)
    return EXIT_FAILED


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)
    _configure_logging(args.verbose)

    print("=" * 70)
    print("  MAIN DATA IMPORT" + ("  (DRY RUN)" if args.dry_run else ""))
    print("=" * 70)
    if args.file:
        print(f"  Mode: legacy single file → {args.file}")
    else:
        print(f"  Contracts: {args.contracts_file}")
        print(f"  Shipments: {args.shipments_file}")

    try:
        init_db(args.db_url, echo=config.SQL_ECHO, read_only=args.dry_run)
        result = run_import(
            contracts_file=args.contracts_file,
            shipments_file=args.shipments_file,
            file=args.file,
            dry_run=args.dry_run,
            clear=args.clear,
            continue_on_error=args.continue_on_error,
            preview_limit=args.preview_limit,
        )
    except KeyboardInterrupt:
        print("\nInterrupted; nothing was committed.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except ImportAbortedError as exc:
        if exc.interrupted:
            print("\nInterrupted; all changes rolled back.", file=sys.stderr)
            return EXIT_INTERRUPTED
        return _fail(str(exc))
    except ValidationFailedError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        for key, errors in exc.failures[:MAX_LISTED_FAILURES]:
            print(f"  {key or '(no key)'}: {', '.join(errors)}", file=sys.stderr)
        if len(exc.failures) > MAX_LISTED_FAILURES:
            print(f"  ... and {len(exc.failures) - MAX_LISTED_FAILURES} more", file=sys.stderr)
        print("Re-run with --continue-on-error to skip them.", file=sys.stderr)
        return EXIT_FAILED
    except TradeImportError as exc:
        return _fail(str(exc))
    except SQLAlchemyError as exc:
        return _fail(f"database error: {str(exc).splitlines()[0]}")

    if result.dry_run:
        return EXIT_OK

    print()
    print("=" * 70)
    print("  IMPORT COMPLETE")
    print("=" * 70)
    print(result.stats.render())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
