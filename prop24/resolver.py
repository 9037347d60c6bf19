"""
Resolution of a free-text location query into a listing index URL.
"""
import asyncio
import logging
import re
from typing import Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from .config import config
from .errors import NavigationError, ResolutionError

logger = logging.getLogger(__name__)


CONSENT_BUTTON_SELECTOR = 'button[id="cookieBannerClose"]'

SEARCH_INPUT_SELECTORS = [
    'input[id*="token-input-AutoCompleteItems"]',
    'input[placeholder*="Search for a City, Suburb or Web Reference"]',
    'input[type="search"]',
]

SEARCH_BUTTON_SELECTORS = [
    'button[class="btn btn-danger"]',
    'button[type="submit"]',
]

# A resolved URL is accepted only when it looks like a listing index
LISTING_INDEX_PATTERNS = [
    re.compile(r"/properties/", re.I),
    re.compile(r"for-sale", re.I),
    re.compile(r"/p/", re.I),
]

TYPING_DELAY_MS = 500
SUGGESTION_SETTLE_S = 5.0
ENTER_DELAY_MS = 5_000


def looks_like_listing_index(url: str) -> bool:
    return any(p.search(url or "") for p in LISTING_INDEX_PATTERNS)


class LocationResolver:
    """
    Drives the site's search box to find the results URL for a location.

    Resolved URLs are cached per instance; a new resolver starts empty.
    """

    def __init__(self, renderer, base_url: str = config.BASE_URL,
                 timeout_ms: int = config.DEFAULT_TIMEOUT_MS,
                 search_selectors: Optional[List[str]] = None,
                 settle_s: float = SUGGESTION_SETTLE_S):
        self.renderer = renderer
        self.base_url = base_url
        self.timeout_ms = timeout_ms
        self.search_selectors = search_selectors or SEARCH_INPUT_SELECTORS
        self.settle_s = settle_s
        self._cache: Dict[str, str] = {}

    async def resolve(self, page, query: str) -> str:
        cached = self._cache.get(query)
        if cached:
            logger.debug(f"Using cached listing URL for {query!r}: {cached}")
            return cached

        await self.open_homepage(page)

        # Each candidate starts from a fresh homepage with an empty search box
        stale = False
        for sel in self.search_selectors:
            if stale:
                await self.open_homepage(page)
                stale = False
            if await self.renderer.query(page, sel) is None:
                continue
            stale = True
            try:
                url = await self._search_with(page, sel, query)
            except PlaywrightError as e:
                logger.warning(f">>> Search via {sel!r} failed: {e}")
                continue
            if url:
                self._cache[query] = url
                return url
            logger.info(f">>> Search via {sel!r} did not reach a listing page")

        raise ResolutionError(f"Could not resolve listing URL for suburb: {query}")

    async def open_homepage(self, page) -> None:
        try:
            await self.renderer.navigate(page, self.base_url, config.HOMEPAGE_TIMEOUT_MS)
        except NavigationError as e:
            raise ResolutionError(f"Failed to load Property24 homepage: {e.reason or e}") from e
        await self.renderer.snapshot(page, "homepage-loaded")
        await self.dismiss_consent(page)

    async def _search_with(self, page, selector: str, query: str):
        await self.renderer.type_text(page, selector, query, delay_ms=TYPING_DELAY_MS)
        await self.renderer.snapshot(page, "search-input-filled")

        # let the type-ahead suggestions load before picking the top one
        await asyncio.sleep(self.settle_s)
        await self.renderer.press(page, "Enter", delay_ms=ENTER_DELAY_MS)
        await self.renderer.snapshot(page, "search-submitted")

        for button in SEARCH_BUTTON_SELECTORS:
            if await self.renderer.click_if_present(page, button):
                await self.renderer.snapshot(page, "search-button-clicked")
                break

        # Some transitions are AJAX driven and never go idle
        if await self.renderer.wait_for_idle(page, self.timeout_ms):
            await self.renderer.snapshot(page, "after-navigation")
        else:
            logger.info(">>> Navigation timeout after search submission")
            await self.renderer.snapshot(page, "navigation-timeout")

        resolved = self.renderer.current_url(page)
        logger.debug(f"Search via {selector!r} landed on {resolved}")
        return resolved if looks_like_listing_index(resolved) else None

    async def dismiss_consent(self, page) -> None:
        """Close the cookie banner if one is showing."""
        if await self.renderer.click_if_present(page, CONSENT_BUTTON_SELECTOR):
            await self.renderer.snapshot(page, "cookie-consent-closed")
