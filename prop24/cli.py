"""
Command line entry point: scrape a suburb into SQLite, or list stored listings.
"""
import argparse
import asyncio
import os
import sqlite3
import sys
from typing import Dict, List

from .config import config
from .database import db_connect, db_get_listings_by_suburb, db_init, upsert_with_price_history
from .core import run_scrape
from .export import export_new_since_run, save_output_rows, write_frame
from .models import ListingRecord, ScraperOptions
from .utils import init_logger, now_iso


def build_parser() -> argparse.ArgumentParser:
    # Logging options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    common.add_argument("--db", type=str, default=config.DB_PATH, help="Path to SQLite DB")
    common.add_argument("--log-level", choices=lvl_choices, default=None,
                        help="Global log level for both console and file (overrides --log-console/--log-file).")
    common.add_argument("--log-console", choices=lvl_choices, default=config.LOG_CONSOLE,
                        help="Console log level (default from env LOG_CONSOLE or INFO).")
    common.add_argument("--log-file", choices=lvl_choices, default=config.LOG_FILE,
                        help="File log level (default from env LOG_FILE or DEBUG).")
    common.add_argument("--log-file-path", default=config.LOG_FILE_PATH,
                        help="Path to log file (default from env LOG_FILE_PATH or prop24.log).")
    common.add_argument("--no-file-log", action="store_true",
                        help="Disable file logging (only console output).")

    ap = argparse.ArgumentParser(prog="prop24", description="Property24 listing scraper with SQLite storage")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("scrape", parents=[common], help="Scrape property listings for a given suburb")
    sp.add_argument("suburb", type=str, help="Suburb name to scrape")
    sp.add_argument("--headless", action=argparse.BooleanOptionalAction, default=config.HEADLESS,
                    help="Run browser in headless mode")
    sp.add_argument("-t", "--timeout", type=int, default=config.DEFAULT_TIMEOUT_MS,
                    help="Page load timeout in milliseconds")
    sp.add_argument("--no-screenshots", action="store_true", help="Skip diagnostic screenshots")
    sp.add_argument("--out", type=str, default="", help="CSV/XLSX file to export scraped rows to")
    sp.add_argument("--export-new", action="store_true",
                    help="Export only listings first stored during this run (uses --out)")

    lp = sub.add_parser("list", parents=[common], help="List properties for a given suburb from database")
    lp.add_argument("suburb", type=str, help="Suburb name")
    return ap


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def save_records(conn: sqlite3.Connection, records: List[ListingRecord], logger) -> Dict:
    """
    Upsert every record; a failing record is logged and skipped.

    Besides database errors, binding raises OverflowError for integers wider
    than 64 bits and UnicodeEncodeError (a ValueError) for lone surrogates.
    """
    summary = {"saved": 0, "new": 0, "price_changes": 0, "failed": []}
    for rec in records:
        try:
            _, is_new, price_changed = upsert_with_price_history(conn, rec)
        except (sqlite3.Error, OverflowError, ValueError) as e:
            logger.warning(f">>> Failed to save property {rec.listing_url}: {e}")
            summary["failed"].append(rec.listing_url)
            continue
        summary["saved"] += 1
        summary["new"] += int(is_new)
        summary["price_changes"] += int(price_changed)
    return summary


def _money(value) -> str:
    return f"R{value:,.0f}" if value is not None else "N/A"


def format_listing(index: int, row: Dict) -> str:
    return "\n".join([
        f"{index}. {row.get('street_address') or 'N/A'}",
        f"   Estate: {row.get('estate_complex') or 'N/A'}",
        f"   Suburb: {row.get('suburb')}",
        f"   Price: {_money(row.get('total_price'))}",
        f"   Price/m²: {_money(row.get('price_per_sqm'))}",
        f"   Floor size: {row.get('floor_size_sqm') or 'N/A'} m²",
        f"   Type: {row.get('property_type') or 'N/A'}",
        f"   Bedrooms: {row.get('bedrooms') or 'N/A'}",
        f"   Bathrooms: {row.get('bathrooms') or 'N/A'}",
        f"   Status: {row.get('status') or 'N/A'}",
        f"   Listed: {row.get('listing_date') or 'N/A'}",
        f"   URL: {row.get('listing_url')}",
    ])


def cmd_scrape(args, logger) -> int:
    run_started_iso = now_iso()
    logger.info(f">>> Run started at {run_started_iso}")

    options = ScraperOptions(
        suburb=args.suburb,
        headless=args.headless,
        timeout_ms=args.timeout,
        screenshots=not args.no_screenshots,
    )
    outcome = asyncio.run(run_scrape(options))

    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    conn = db_connect(args.db)
    try:
        db_init(conn)
        summary = {"saved": 0, "new": 0, "price_changes": 0, "failed": []}
        if outcome.records:
            logger.info(">>> Saving properties to database...")
            summary = save_records(conn, outcome.records, logger)

        logger.info(">>> Scraping completed" if outcome.success else ">>> Scraping failed")
        logger.info(f">>> {outcome.message}")
        logger.info(f">>> Pages scanned: {outcome.pages}, listing elements: {outcome.attempted}")
        logger.info(f">>> Properties found: {outcome.produced}")
        logger.info(f">>> Properties saved: {summary['saved']} "
                    f"(new: {summary['new']}, price changes: {summary['price_changes']})")
        if summary["failed"]:
            logger.warning(f">>> Failed to save {len(summary['failed'])} properties")
        if outcome.errors:
            logger.warning(f">>> Errors: {', '.join(outcome.errors)}")

        if args.out:
            if args.export_new:
                dfn = export_new_since_run(conn, run_started_iso)
                write_frame(dfn, args.out)
                logger.info(f">>> Export only new items: {len(dfn)} rows -> {args.out}")
            else:
                save_output_rows(outcome.records, args.out, logger=logger)
    finally:
        conn.close()

    return 0 if outcome.success else 1


def cmd_list(args, logger) -> int:
    if not os.path.exists(args.db):
        logger.error(f">>> Database file not found: {args.db}")
        return 1
    conn = db_connect(args.db)
    try:
        db_init(conn)
        rows = db_get_listings_by_suburb(conn, args.suburb)
    finally:
        conn.close()

    if not rows:
        print(f"No properties found for suburb: {args.suburb}")
        return 0
    print(f"Properties in {args.suburb} ({len(rows)} total):")
    print("=" * 50)
    for i, row in enumerate(rows, 1):
        print(format_listing(i, row))
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.debug(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if args.no_file_log else eff_file}, "
        f"path={'N/A' if args.no_file_log else args.log_file_path}"
    )

    if args.command == "scrape":
        return cmd_scrape(args, logger)
    return cmd_list(args, logger)


if __name__ == "__main__":
    sys.exit(main())
