"""
Database operations for the Property24 scraper.
"""
import sqlite3
from typing import Dict, List, Optional, Tuple

from .models import ListingRecord
from .utils import now_iso


# Schema definitions
DDL_LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  listing_url TEXT UNIQUE NOT NULL,
  street_address TEXT,
  estate_complex TEXT,
  suburb TEXT NOT NULL,
  city TEXT,
  postal_code TEXT,
  floor_size_sqm REAL,
  total_price REAL,
  price_per_sqm REAL,
  rates_and_taxes REAL,
  levies REAL,
  status TEXT,
  property_type TEXT,
  bedrooms INTEGER,
  bathrooms INTEGER,
  listing_date TEXT,
  scrape_date TEXT,
  created_at TEXT,
  updated_at TEXT
);
"""

DDL_PRICE_HISTORY = """
CREATE TABLE IF NOT EXISTS price_history (
  listing_url TEXT,
  ts TEXT,
  total_price REAL,
  PRIMARY KEY (listing_url, ts)
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_listings_suburb ON listings(suburb);",
    "CREATE INDEX IF NOT EXISTS idx_listings_status ON listings(status);",
    "CREATE INDEX IF NOT EXISTS idx_listings_listing_date ON listings(listing_date);",
    "CREATE INDEX IF NOT EXISTS idx_listings_property_type ON listings(property_type);",
    "CREATE INDEX IF NOT EXISTS idx_price_history_url ON price_history(listing_url);",
]

# Every column a scrape may overwrite
MUTABLE_COLUMNS = [
    "street_address", "estate_complex", "suburb", "city", "postal_code",
    "floor_size_sqm", "total_price", "price_per_sqm", "rates_and_taxes", "levies",
    "status", "property_type", "bedrooms", "bathrooms", "listing_date",
]


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_LISTINGS)
    conn.execute(DDL_PRICE_HISTORY)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def row_to_dict(cur, row):
    """Convert a result row to a dictionary."""
    return {desc[0]: row[i] for i, desc in enumerate(cur.description)}


def db_get_listing(conn: sqlite3.Connection, listing_url: str) -> Optional[Dict]:
    """Retrieve a stored listing by its URL."""
    cur = conn.cursor()
    cur.execute("SELECT * FROM listings WHERE listing_url = ?", (listing_url,))
    r = cur.fetchone()
    if not r:
        return None
    return row_to_dict(cur, r)


def db_insert_listing(conn: sqlite3.Connection, rec: ListingRecord):
    """Insert new listing into database."""
    row = rec.to_row()
    ts = now_iso()
    columns = ["listing_url"] + MUTABLE_COLUMNS + ["scrape_date", "created_at", "updated_at"]
    values = [row[c] for c in ["listing_url"] + MUTABLE_COLUMNS] + [ts, ts, ts]
    placeholders = ",".join("?" for _ in columns)
    conn.execute(
        f"INSERT INTO listings ({','.join(columns)}) VALUES ({placeholders})",
        values,
    )
    conn.commit()


def db_update_listing(conn: sqlite3.Connection, rec: ListingRecord):
    """Overwrite every mutable field of an existing listing."""
    row = rec.to_row()
    ts = now_iso()
    assignments = ", ".join(f"{c}=?" for c in MUTABLE_COLUMNS)
    values = [row[c] for c in MUTABLE_COLUMNS] + [ts, ts, rec.listing_url]
    conn.execute(
        f"UPDATE listings SET {assignments}, scrape_date=?, updated_at=? WHERE listing_url=?",
        values,
    )
    conn.commit()


def db_insert_price_event(conn: sqlite3.Connection, listing_url: str, total_price: Optional[float]):
    """Insert price change event into price history."""
    if total_price is None:
        return
    conn.execute("""
    INSERT OR REPLACE INTO price_history (listing_url, ts, total_price)
    VALUES (?, ?, ?)
    """, (listing_url, now_iso(), total_price))
    conn.commit()


def upsert_listing(conn: sqlite3.Connection, rec: ListingRecord) -> Dict:
    """
    Insert or update a listing keyed by its URL and return the stored row.

    Upserting the same URL twice leaves one row holding the latest values.
    """
    if db_get_listing(conn, rec.listing_url) is None:
        db_insert_listing(conn, rec)
    else:
        db_update_listing(conn, rec)
    return db_get_listing(conn, rec.listing_url)


def upsert_with_price_history(conn: sqlite3.Connection, rec: ListingRecord) -> Tuple[Dict, bool, bool]:
    """
    Upsert a listing and track asking price changes.

    Returns:
        Tuple of (stored_row, is_new_item, price_changed)
    """
    existing = db_get_listing(conn, rec.listing_url)
    new_price = float(rec.total_price) if rec.total_price is not None else None
    if existing is None:
        price_changed = new_price is not None
    else:
        old_price = existing.get("total_price")
        price_changed = new_price is not None and (old_price is None or float(old_price) != new_price)

    stored = upsert_listing(conn, rec)
    if price_changed:
        db_insert_price_event(conn, rec.listing_url, new_price)
    return stored, existing is None, price_changed


def db_get_listings_by_suburb(conn: sqlite3.Connection, suburb: str) -> List[Dict]:
    """Stored listings for a suburb, newest listing date first, undated last."""
    cur = conn.cursor()
    cur.execute("""
    SELECT * FROM listings
    WHERE suburb = ? COLLATE NOCASE
    ORDER BY listing_date IS NULL, listing_date DESC, id ASC
    """, (suburb,))
    return [row_to_dict(cur, r) for r in cur.fetchall()]


def db_count_listings(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM listings").fetchone()[0]


def db_get_price_history(conn: sqlite3.Connection, listing_url: str) -> List[Dict]:
    cur = conn.cursor()
    cur.execute(
        "SELECT ts, total_price FROM price_history WHERE listing_url = ? ORDER BY ts ASC",
        (listing_url,),
    )
    return [row_to_dict(cur, r) for r in cur.fetchall()]
