"""
Response models for the listings API.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel

from prop24.models import LISTING_STATUSES


class Listing(BaseModel):
    """A stored listing as the scraper last saw it."""
    id: int
    listing_url: str
    suburb: str
    street_address: Optional[str] = None
    estate_complex: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    floor_size_sqm: Optional[float] = None
    total_price: Optional[float] = None
    price_per_sqm: Optional[float] = None
    rates_and_taxes: Optional[float] = None
    levies: Optional[float] = None
    status: Optional[str] = None
    listing_date: Optional[str] = None
    scrape_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ListingPage(BaseModel):
    total: int
    limit: int
    offset: int
    items: List[Listing]


class PricePoint(BaseModel):
    ts: str
    total_price: Optional[float] = None


class PriceHistory(BaseModel):
    listing_id: int
    listing_url: str
    points: List[PricePoint]


class MarketSummary(BaseModel):
    total_listings: int
    priced_listings: int
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    avg_price: Optional[float] = None
    avg_price_per_sqm: Optional[float] = None
    repriced_listings: int
    by_suburb: Dict[str, int]
    by_status: Dict[str, int]
    by_property_type: Dict[str, int]


STATUS_PATTERN = "^(" + "|".join(LISTING_STATUSES) + ")$"
