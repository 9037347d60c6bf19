"""
Listing endpoints: search, detail, price history, per-suburb view and CSV export.
"""
import logging
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from prop24.export import EXPORT_COLUMNS
from prop24.utils import sanitize_label

from ..config import config
from ..database import (
    DEFAULT_SORT,
    SORTS,
    find_listings,
    listing_by_id,
    market_summary,
    price_history,
    suburb_listings,
)
from ..models import STATUS_PATTERN, Listing, ListingPage, MarketSummary, PriceHistory, PricePoint

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])

SORT_PATTERN = "^(" + "|".join(SORTS) + ")$"


def listing_filters(
    q: Optional[str] = Query(None, description="Substring of street, estate, suburb or city"),
    suburb: Optional[str] = None,
    status: Optional[str] = Query(None, pattern=STATUS_PATTERN),
    property_type: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_bedrooms: Optional[int] = Query(None, ge=0),
    max_price_per_sqm: Optional[float] = Query(None, ge=0),
) -> dict:
    return {
        "q": q,
        "suburb": suburb,
        "status": status,
        "property_type": property_type,
        "min_price": min_price,
        "max_price": max_price,
        "min_bedrooms": min_bedrooms,
        "max_price_per_sqm": max_price_per_sqm,
    }


def _listing_or_404(listing_id: int) -> dict:
    row = listing_by_id(listing_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"No listing with id {listing_id}")
    return row


@router.get("/listings", response_model=ListingPage)
def search_listings(
    filters: dict = Depends(listing_filters),
    sort: str = Query(DEFAULT_SORT, pattern=SORT_PATTERN),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
):
    total, rows = find_listings(filters, sort, limit, offset)
    return ListingPage(total=total, limit=limit, offset=offset, items=[Listing(**r) for r in rows])


@router.get("/listings/{listing_id}", response_model=Listing)
def get_listing(listing_id: int):
    return Listing(**_listing_or_404(listing_id))


@router.get("/listings/{listing_id}/price-history", response_model=PriceHistory)
def get_price_history(listing_id: int):
    """Asking price events, oldest first."""
    row = _listing_or_404(listing_id)
    points = [PricePoint(**p) for p in price_history(row["listing_url"])]
    return PriceHistory(listing_id=listing_id, listing_url=row["listing_url"], points=points)


@router.get("/suburbs/{suburb}/listings", response_model=List[Listing])
def get_suburb_listings(suburb: str):
    """Same matching and order as `prop24 list <suburb>`."""
    return [Listing(**r) for r in suburb_listings(suburb)]


@router.get("/stats", response_model=MarketSummary)
def get_market_summary():
    return MarketSummary(**market_summary())


@router.get("/export/csv")
def export_csv(filters: dict = Depends(listing_filters),
               sort: str = Query(DEFAULT_SORT, pattern=SORT_PATTERN)):
    """Matching listings in the CLI's export column layout."""
    _, rows = find_listings(filters, sort, limit=config.MAX_EXPORT_ROWS)
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    name = sanitize_label(filters.get("suburb") or "all")
    logger.info(f">>> Exporting {len(df)} listings as CSV")
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="prop24_{name}.csv"'},
    )
