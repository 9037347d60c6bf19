"""
Property24 Listing Scraper Package
"""
from .models import ListingRecord, ScrapeOutcome, ScraperOptions
from .core import Property24Scraper, run_scrape
from .errors import NavigationError, RendererError, ResolutionError, ScraperError
from .extractor import extract_listings, scan_page
from .database import (
    db_connect,
    db_init,
    upsert_listing,
    upsert_with_price_history,
    db_get_listing,
    db_get_listings_by_suburb
)
from .export import (
    export_new_since_run,
    export_price_history,
    save_output_rows
)
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "ListingRecord",
    "ScrapeOutcome",
    "ScraperOptions",
    "Property24Scraper",
    "run_scrape",
    "ScraperError",
    "RendererError",
    "NavigationError",
    "ResolutionError",
    "extract_listings",
    "scan_page",
    "db_connect",
    "db_init",
    "upsert_listing",
    "upsert_with_price_history",
    "db_get_listing",
    "db_get_listings_by_suburb",
    "export_new_since_run",
    "export_price_history",
    "save_output_rows",
    "init_logger",
    "now_iso"
]
