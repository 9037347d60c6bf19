"""
Data models for the Property24 scraper.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .config import config
from .utils import is_absolute_url


STATUS_SOLD = "sold"
STATUS_UNDER_OFFER = "under_offer"
STATUS_NO_OFFER = "no_offer"
LISTING_STATUSES = (STATUS_SOLD, STATUS_UNDER_OFFER, STATUS_NO_OFFER)


@dataclass(frozen=True)
class ListingRecord:
    """One property-for-sale listing discovered on a results page."""

    # Identity
    listing_url: str
    suburb: str

    # Address
    street_address: Optional[str] = None
    estate_complex: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None

    # Measurements
    floor_size_sqm: Optional[Decimal] = None

    # Pricing
    total_price: Optional[Decimal] = None
    price_per_sqm: Optional[Decimal] = None
    rates_and_taxes: Optional[Decimal] = None
    levies: Optional[Decimal] = None

    # Classification
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    status: Optional[str] = None

    listing_date: Optional[date] = None

    def __post_init__(self):
        if not is_absolute_url(self.listing_url):
            raise ValueError(f"listing_url must be absolute, got {self.listing_url!r}")
        if self.status is not None and self.status not in LISTING_STATUSES:
            raise ValueError(f"Unknown listing status: {self.status!r}")

    def to_row(self) -> Dict[str, Any]:
        """Flatten into plain column values (floats and ISO dates)."""
        def num(v):
            return float(v) if v is not None else None

        return {
            "listing_url": self.listing_url,
            "street_address": self.street_address,
            "estate_complex": self.estate_complex,
            "suburb": self.suburb,
            "city": self.city,
            "postal_code": self.postal_code,
            "floor_size_sqm": num(self.floor_size_sqm),
            "total_price": num(self.total_price),
            "price_per_sqm": num(self.price_per_sqm),
            "rates_and_taxes": num(self.rates_and_taxes),
            "levies": num(self.levies),
            "status": self.status,
            "property_type": self.property_type,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "listing_date": self.listing_date.isoformat() if self.listing_date else None,
        }


@dataclass
class PageScan:
    """Result of scanning a single rendered results page."""
    records: List[ListingRecord] = field(default_factory=list)
    attempted: int = 0
    warnings: List[str] = field(default_factory=list)


@dataclass
class ScraperOptions:
    suburb: str
    headless: bool = True
    timeout_ms: int = config.DEFAULT_TIMEOUT_MS
    screenshots: bool = True
    screenshot_root: str = config.SCREENSHOT_ROOT


@dataclass
class ScrapeOutcome:
    """
    Result of one scraping pass for a single location query.

    `success` is True once the run reached pagination, even with zero
    records. Warnings collected along the way still land in `errors`.
    """
    success: bool
    records: List[ListingRecord] = field(default_factory=list)
    attempted: int = 0
    pages: int = 0
    errors: List[str] = field(default_factory=list)
    message: str = ""
    resolved_url: Optional[str] = None

    @property
    def produced(self) -> int:
        return len(self.records)

    @classmethod
    def failure(cls, error: str, message: str = "") -> "ScrapeOutcome":
        return cls(
            success=False,
            errors=[error],
            message=message or f"Failed to scrape properties: {error}",
        )
