"""
Core scraping orchestration and browser management.
"""
import logging

from playwright.async_api import Error as PlaywrightError

from .config import config
from .errors import RendererError, ScraperError
from .extractor import scan_page
from .models import ScrapeOutcome, ScraperOptions
from .pagination import CARD_MARKER_SELECTOR, PaginationWalker
from .renderer import PageRenderer
from .resolver import LocationResolver

logger = logging.getLogger(__name__)


class Property24Scraper:
    """
    Scrapes every result page for one suburb query.

    The scraper exclusively owns its renderer; call close() exactly once
    when done, on success and on failure alike.
    """

    def __init__(self, options: ScraperOptions, renderer=None, base_url: str = config.BASE_URL):
        self.options = options
        self.base_url = base_url
        self.renderer = renderer or PageRenderer(
            options.suburb,
            headless=options.headless,
            screenshots=options.screenshots,
            screenshot_root=options.screenshot_root,
        )
        self.resolver = LocationResolver(self.renderer, base_url=base_url, timeout_ms=options.timeout_ms)

    async def init(self) -> None:
        await self.renderer.launch()

    async def close(self) -> None:
        await self.renderer.close()

    async def find_listing_url(self, page) -> str:
        return await self.resolver.resolve(page, self.options.suburb)

    def scan(self, html: str):
        return scan_page(html, self.options.suburb, self.base_url)

    async def scrape_suburb(self) -> ScrapeOutcome:
        suburb = self.options.suburb
        logger.info(f">>> Scraping properties for: {suburb}")

        try:
            page = await self.renderer.open_page()
        except RendererError as e:
            logger.error(f">>> Scraping error: {e}")
            return ScrapeOutcome.failure(str(e))

        try:
            try:
                search_url = await self.find_listing_url(page)
                logger.info(f">>> Resolved URL: {search_url}")
                await self.renderer.navigate(page, search_url, self.options.timeout_ms)
            except (ScraperError, PlaywrightError) as e:
                logger.error(f">>> Scraping error: {e}")
                return ScrapeOutcome.failure(str(e))

            await self.renderer.snapshot(page, "listing-page-loaded")
            if not await self.renderer.wait_for_selector(page, CARD_MARKER_SELECTOR, config.CARD_WAIT_TIMEOUT_MS):
                logger.warning(">>> Property cards not found, attempting alternative selectors")

            walker = PaginationWalker(self.renderer, self.scan)
            records = await walker.collect_all(page)
            await self.renderer.snapshot(page, "properties-extracted")
            logger.info(f">>> Found {len(records)} properties")

            message = f"Successfully scraped {len(records)} properties from {suburb}"
            if walker.warnings:
                message += f" with {len(walker.warnings)} warnings"
            return ScrapeOutcome(
                success=True,
                records=records,
                attempted=walker.attempted,
                pages=walker.pages,
                errors=list(walker.warnings),
                message=message,
                resolved_url=search_url,
            )
        finally:
            await self.renderer.close_page(page)


async def run_scrape(options: ScraperOptions, renderer=None) -> ScrapeOutcome:
    """
    Run one bounded scraping pass: launch, scrape, and always release the
    browser afterwards.
    """
    scraper = Property24Scraper(options, renderer=renderer)
    try:
        try:
            await scraper.init()
        except RendererError as e:
            logger.error(f">>> {e}")
            return ScrapeOutcome.failure(str(e))
        return await scraper.scrape_suburb()
    finally:
        await scraper.close()
