"""
Walking paginated search results one page at a time.
"""
import logging
from typing import Callable, List

from playwright.async_api import Error as PlaywrightError

from .config import config
from .models import ListingRecord, PageScan

logger = logging.getLogger(__name__)


MAX_PAGES = config.MAX_PAGES

CARD_MARKER_SELECTOR = '[data-test-id="property-card"]'

NEXT_PAGE_SELECTORS = [
    'a[rel="next"]',
    'button:has-text("Next")',
    '[class*="next"] a',
    'a[aria-label*="next" i]',
    'a[title*="next" i]',
]


class PaginationWalker:
    """
    Collects records page by page until no next-page control is left or
    the page cap is reached. Output keeps page order, then listing order.
    """

    def __init__(self, renderer, scan: Callable[[str], PageScan], max_pages: int = MAX_PAGES):
        self.renderer = renderer
        self.scan = scan
        self.max_pages = max_pages
        self.pages = 0
        self.attempted = 0
        self.warnings: List[str] = []

    async def collect_all(self, page) -> List[ListingRecord]:
        records: List[ListingRecord] = []
        page_number = 1
        self.pages = self.attempted = 0
        self.warnings = []

        while True:
            logger.info(f">>> Extracting properties from page {page_number}...")
            try:
                html = await self.renderer.content(page)
            except PlaywrightError as e:
                msg = f"page {page_number}: could not read page content: {e}"
                logger.warning(f">>> {msg}")
                self.warnings.append(msg)
                break
            result = self.scan(html)
            self.pages += 1
            self.attempted += result.attempted
            self.warnings.extend(f"page {page_number}: {w}" for w in result.warnings)
            records.extend(result.records)
            logger.info(f">>> Found {len(result.records)} properties on page {page_number}")

            if page_number >= self.max_pages:
                logger.warning(f">>> Stopped at the page cap ({self.max_pages} pages)")
                break
            if not await self.advance(page, page_number):
                logger.info(f">>> Reached last page ({page_number} total pages)")
                break
            page_number += 1

        return records

    async def advance(self, page, current_page: int) -> bool:
        """Activate the first next-page control present; False when none is."""
        try:
            for sel in NEXT_PAGE_SELECTORS:
                handle = await self.renderer.query(page, sel)
                if handle is None:
                    continue
                logger.debug(f"Next page control found via {sel!r}")
                await self.renderer.activate(page, handle, CARD_MARKER_SELECTOR)
                await self.renderer.snapshot(page, f"pagination-page-{current_page + 1}")
                return True
        except PlaywrightError as e:
            msg = f"Error navigating to next page: {e}"
            logger.warning(f">>> {msg}")
            self.warnings.append(msg)
        return False
