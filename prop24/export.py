"""
Export utilities for the Property24 scraper.
"""
import sqlite3
from typing import List, Optional

import pandas as pd

from .models import ListingRecord

EXPORT_COLUMNS = [
    "listing_url", "street_address", "estate_complex", "suburb", "city", "postal_code",
    "floor_size_sqm", "total_price", "price_per_sqm", "rates_and_taxes", "levies",
    "status", "property_type", "bedrooms", "bathrooms", "listing_date",
]


def records_to_frame(records: List[ListingRecord]) -> pd.DataFrame:
    """One row per record, in scrape order."""
    return pd.DataFrame([r.to_row() for r in records], columns=EXPORT_COLUMNS)


def write_frame(df: pd.DataFrame, out_path: str):
    """Write to Excel when the path ends in .xlsx, CSV otherwise."""
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def export_new_since_run(conn: sqlite3.Connection, run_started_iso: str) -> pd.DataFrame:
    """Export listings that were first stored since the given timestamp."""
    q = """
    SELECT *
    FROM listings
    WHERE created_at >= ?
    ORDER BY created_at DESC
    """
    return pd.read_sql_query(q, conn, params=(run_started_iso,))


def export_price_history(conn: sqlite3.Connection, listing_url: Optional[str] = None) -> pd.DataFrame:
    """Export price history for all listings or a specific one."""
    if listing_url:
        q = "SELECT * FROM price_history WHERE listing_url=? ORDER BY ts ASC"
        return pd.read_sql_query(q, conn, params=(listing_url,))
    q = "SELECT * FROM price_history ORDER BY listing_url, ts ASC"
    return pd.read_sql_query(q, conn)


def save_output_rows(records: List[ListingRecord], out_path: str, logger=None) -> int:
    """Save scraped records to CSV or Excel file."""
    df = records_to_frame(records)
    write_frame(df, out_path)
    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
    return len(df)
