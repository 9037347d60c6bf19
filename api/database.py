"""
Read-only queries over the scraper's SQLite store.

Per-suburb and price history lookups reuse the scraper's own queries, so the
API and `prop24 list` agree on matching and ordering.
"""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from prop24.database import db_get_listings_by_suburb, db_get_price_history, row_to_dict

from .config import config


@contextmanager
def read_only_connection():
    """Open the store read-only; the API never writes to it."""
    uri = Path(config.DB_PATH).resolve().as_uri() + "?mode=ro"
    conn = sqlite3.connect(uri, uri=True)
    try:
        yield conn
    finally:
        conn.close()


# filter name -> (SQL condition, how the request value becomes its parameter)
LISTING_FILTERS = {
    "suburb": ("suburb = ? COLLATE NOCASE", str),
    "status": ("status = ?", str),
    "property_type": ("lower(property_type) LIKE ?", lambda v: f"%{v.lower()}%"),
    "min_price": ("total_price >= ?", float),
    "max_price": ("total_price <= ?", float),
    "min_bedrooms": ("bedrooms >= ?", int),
    "max_price_per_sqm": ("price_per_sqm <= ?", float),
}

ADDRESS_COLUMNS = ("street_address", "estate_complex", "suburb", "city")

SORTS = {
    "listing_date_desc": "listing_date IS NULL, listing_date DESC, id ASC",
    "listing_date_asc": "listing_date IS NULL, listing_date ASC, id ASC",
    "price_asc": "total_price IS NULL, total_price ASC, id ASC",
    "price_desc": "total_price IS NULL, total_price DESC, id ASC",
    "price_per_sqm_asc": "price_per_sqm IS NULL, price_per_sqm ASC, id ASC",
    "updated_desc": "updated_at DESC, id ASC",
}
DEFAULT_SORT = "listing_date_desc"


def where_clause(filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """SQL WHERE clause and parameters for the filters that are set."""
    conditions, params = [], []
    for name, (condition, convert) in LISTING_FILTERS.items():
        value = filters.get(name)
        if value is None or value == "":
            continue
        conditions.append(condition)
        params.append(convert(value))

    q = filters.get("q")
    if q:
        conditions.append("(" + " OR ".join(f"lower({c}) LIKE ?" for c in ADDRESS_COLUMNS) + ")")
        params.extend([f"%{q.lower()}%"] * len(ADDRESS_COLUMNS))

    return (" WHERE " + " AND ".join(conditions) if conditions else ""), params


def _select(conn, sql: str, params) -> List[Dict]:
    cur = conn.execute(sql, params)
    return [row_to_dict(cur, r) for r in cur.fetchall()]


def find_listings(filters: Dict[str, Any], sort: str = DEFAULT_SORT,
                  limit: int = 50, offset: int = 0) -> Tuple[int, List[Dict]]:
    """Total number of matches plus one page of them."""
    where, params = where_clause(filters)
    order = SORTS.get(sort, SORTS[DEFAULT_SORT])
    with read_only_connection() as conn:
        total = conn.execute(f"SELECT COUNT(*) FROM listings{where}", params).fetchone()[0]
        rows = _select(conn, f"SELECT * FROM listings{where} ORDER BY {order} LIMIT ? OFFSET ?",
                       params + [limit, offset])
    return total, rows


def listing_by_id(listing_id: int) -> Optional[Dict]:
    with read_only_connection() as conn:
        rows = _select(conn, "SELECT * FROM listings WHERE id = ?", (listing_id,))
    return rows[0] if rows else None


def suburb_listings(suburb: str) -> List[Dict]:
    with read_only_connection() as conn:
        return db_get_listings_by_suburb(conn, suburb)[:config.MAX_EXPORT_ROWS]


def price_history(listing_url: str) -> List[Dict]:
    with read_only_connection() as conn:
        return db_get_price_history(conn, listing_url)


def _counts(conn, column: str, limit: int = 20) -> Dict[str, int]:
    rows = conn.execute(
        f"SELECT {column}, COUNT(*) AS n FROM listings WHERE {column} IS NOT NULL "
        f"GROUP BY {column} ORDER BY n DESC, {column} ASC LIMIT ?", (limit,)
    ).fetchall()
    return {str(value): n for value, n in rows}


def market_summary() -> Dict[str, Any]:
    """Asking price figures across the store, plus breakdowns."""
    with read_only_connection() as conn:
        total = conn.execute("SELECT COUNT(*) FROM listings").fetchone()[0]
        priced, lo, hi, avg = conn.execute(
            "SELECT COUNT(total_price), MIN(total_price), MAX(total_price), AVG(total_price) FROM listings"
        ).fetchone()
        avg_per_sqm = conn.execute("SELECT AVG(price_per_sqm) FROM listings").fetchone()[0]
        # Listings whose asking price moved at least once since first seen
        repriced = conn.execute(
            "SELECT COUNT(*) FROM (SELECT listing_url FROM price_history "
            "GROUP BY listing_url HAVING COUNT(*) > 1)"
        ).fetchone()[0]
        return {
            "total_listings": total,
            "priced_listings": priced,
            "min_price": lo,
            "max_price": hi,
            "avg_price": avg,
            "avg_price_per_sqm": avg_per_sqm,
            "repriced_listings": repriced,
            "by_suburb": _counts(conn, "suburb"),
            "by_status": _counts(conn, "status"),
            "by_property_type": _counts(conn, "property_type"),
        }
