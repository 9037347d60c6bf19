"""
Playwright browser session management and page interaction primitives.
"""
import logging
import os
from datetime import datetime
from typing import Optional

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeout,
    async_playwright,
)

from .config import config
from .errors import NavigationError, RendererError
from .utils import sanitize_label

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


def diagnostic_dir_name(query: str, when: Optional[datetime] = None) -> str:
    """Folder name for one run's snapshots: <YYYY-MM-DDTHH-MM-SS>_<query>."""
    when = when or datetime.now()
    return f"{when.strftime('%Y-%m-%dT%H-%M-%S')}_{sanitize_label(query)}"


class PageRenderer:
    """
    Owns the single browser session of a scraping run.

    Every method is awaited sequentially by its callers; there is never more
    than one page interaction in flight.
    """

    def __init__(
        self,
        query: str,
        headless: bool = True,
        screenshots: bool = True,
        screenshot_root: str = config.SCREENSHOT_ROOT,
    ):
        self.headless = headless
        self.screenshots = screenshots
        self.snapshot_counter = 0
        self.snapshot_dir: Optional[str] = None
        self._playwright = None
        self._browser = None
        self._context = None
        self._closed = False

        if screenshots:
            self.snapshot_dir = os.path.join(screenshot_root, diagnostic_dir_name(query))
            os.makedirs(self.snapshot_dir, exist_ok=True)
            logger.info(f">>> Screenshots will be saved to: {self.snapshot_dir}")

    async def launch(self) -> None:
        launch_args = ["--no-sandbox", "--disable-setuid-sandbox"]
        if self.headless:
            launch_args += ["--disable-dev-shm-usage", "--disable-gpu"]
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=launch_args,
            )
            self._context = await self._browser.new_context(
                viewport={"width": 1280, "height": 900},
                user_agent=USER_AGENT,
                locale="en-ZA",
            )
        except PlaywrightError as e:
            logger.error(f">>> Failed to launch browser: {e}")
            await self.close()
            raise RendererError(f"Failed to launch browser: {e}") from e
        self._context.set_default_timeout(config.DEFAULT_TIMEOUT_MS)
        logger.info(f">>> Browser launched (headless={self.headless})")

    async def open_page(self):
        if self._context is None:
            raise RendererError("Browser not initialized")
        try:
            return await self._context.new_page()
        except PlaywrightError as e:
            raise RendererError(f"Failed to open page: {e}") from e

    async def close_page(self, page) -> None:
        try:
            await page.close()
        except PlaywrightError as e:
            logger.warning(f">>> Failed to close page: {e}")

    async def close(self) -> None:
        """Release the browser session. Later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
                logger.info(">>> Browser closed")
        except PlaywrightError as e:
            logger.warning(f">>> Error while closing browser: {e}")
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._context = self._browser = self._playwright = None

    # --- navigation ----------------------------------------------------------

    async def navigate(self, page, url: str, timeout_ms: int = config.DEFAULT_TIMEOUT_MS) -> None:
        logger.info(f">>> Opening: {url}")
        try:
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeout as e:
            raise NavigationError(url, f"timed out after {timeout_ms} ms") from e
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e

    async def wait_for_selector(self, page, selector: str, timeout_ms: int) -> bool:
        """True once `selector` is attached; False on timeout or error."""
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeout:
            logger.debug(f"Selector {selector!r} not found within {timeout_ms} ms")
            return False
        except PlaywrightError as e:
            logger.debug(f"Waiting for {selector!r} failed: {e}")
            return False

    async def wait_for_idle(self, page, timeout_ms: int) -> bool:
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightTimeout:
            return False

    async def activate(self, page, handle, fallback_selector: str,
                       navigation_timeout_ms: int = 10_000,
                       fallback_timeout_ms: int = 5_000) -> None:
        """
        Click `handle` and wait for the page to settle: a full navigation
        first, else the reappearance of `fallback_selector` for AJAX updates.
        Neither wait failing is an error.
        """
        try:
            async with page.expect_navigation(wait_until="networkidle", timeout=navigation_timeout_ms):
                await handle.click()
        except PlaywrightTimeout:
            await self.wait_for_selector(page, fallback_selector, fallback_timeout_ms)

    # --- element interaction -------------------------------------------------

    async def query(self, page, selector: str):
        """First element matching `selector`, or None."""
        try:
            return await page.query_selector(selector)
        except PlaywrightError as e:
            logger.debug(f"Query {selector!r} failed: {e}")
            return None

    async def type_text(self, page, selector: str, text: str, delay_ms: int = 100) -> None:
        """Replace the contents of the input at `selector`, one key at a time."""
        field = page.locator(selector).first
        await field.focus()
        try:
            await field.click(click_count=1, timeout=2_000)
        except PlaywrightError as e:
            logger.debug(f"Click on {selector!r} before typing failed: {e}")
        await field.fill("")
        await field.press_sequentially(text, delay=delay_ms)

    async def press(self, page, key: str, delay_ms: int = 0) -> None:
        await page.keyboard.press(key, delay=delay_ms)

    async def click_if_present(self, page, selector: str, timeout_ms: int = 2_000) -> bool:
        """Click the first element matching `selector`; False when absent."""
        handle = await self.query(page, selector)
        if handle is None:
            return False
        try:
            await handle.click(timeout=timeout_ms)
            return True
        except PlaywrightError as e:
            logger.debug(f"Click on {selector!r} failed: {e}")
            return False

    async def content(self, page) -> str:
        return await page.content()

    def current_url(self, page) -> str:
        return page.url

    # --- diagnostics ---------------------------------------------------------

    async def snapshot(self, page, label: str) -> Optional[str]:
        """Best-effort full page screenshot; never raises."""
        if not self.screenshots or not self.snapshot_dir:
            return None
        try:
            self.snapshot_counter += 1
            timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
            filename = f"{self.snapshot_counter:03d}_{sanitize_label(label)}_{timestamp}.png"
            path = os.path.join(self.snapshot_dir, filename)
            await page.screenshot(path=path, full_page=True)
            logger.debug(f">>> Screenshot saved: {filename}")
            return path
        except Exception as e:
            logger.warning(f">>> Failed to take screenshot {label!r}: {e}")
            return None
