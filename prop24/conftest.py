"""
Shared fixtures: an in-memory stand-in for the Playwright renderer.
"""
import sqlite3

import pytest
from playwright.async_api import Error as PlaywrightError

from prop24.database import db_init
from prop24.errors import NavigationError, RendererError
from prop24.pagination import NEXT_PAGE_SELECTORS


class FakeRenderer:
    """
    Serves a fixed list of HTML pages and scripted search results.

    `search_results` maps a search-input selector to the URL the browser
    lands on after submitting through it.
    """

    def __init__(self, pages=None, infinite=False, present=(), search_results=None,
                 failing_inputs=(), failing_urls=(), fail_launch=False,
                 next_selector=NEXT_PAGE_SELECTORS[0], fail_activate=False):
        self.pages = list(pages or ["<html></html>"])
        self.infinite = infinite
        self.present = set(present)
        self.search_results = dict(search_results or {})
        self.failing_inputs = set(failing_inputs)
        self.failing_urls = set(failing_urls)
        self.fail_launch = fail_launch
        self.next_selector = next_selector
        self.fail_activate = fail_activate

        self.index = 0
        self.url = "about:blank"
        self.navigations = []
        self.typed = []
        self.typed_on = []
        self.clicked = []
        self.snapshots = []
        self.activations = 0
        self.launched = False
        self.close_calls = 0
        self.pages_closed = 0
        self._pending_url = None

    async def launch(self):
        if self.fail_launch:
            raise RendererError("Failed to launch browser: no chromium")
        self.launched = True

    async def open_page(self):
        return object()

    async def close_page(self, page):
        self.pages_closed += 1

    async def close(self):
        self.close_calls += 1

    async def navigate(self, page, url, timeout_ms=30_000):
        self.navigations.append(url)
        if url in self.failing_urls:
            raise NavigationError(url, "timed out")
        self.url = url

    async def wait_for_selector(self, page, selector, timeout_ms):
        return selector in self.present

    async def wait_for_idle(self, page, timeout_ms):
        return True

    async def query(self, page, selector):
        if selector in NEXT_PAGE_SELECTORS:
            has_next = self.infinite or self.index < len(self.pages) - 1
            return "next-handle" if has_next and selector == self.next_selector else None
        return f"handle:{selector}" if selector in self.present else None

    async def activate(self, page, handle, fallback_selector, **kwargs):
        if self.fail_activate:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.activations += 1
        self.index += 1

    async def type_text(self, page, selector, text, delay_ms=100):
        if selector in self.failing_inputs:
            raise PlaywrightError("Element is not attached to the DOM")
        self.typed.append((selector, text))
        self.typed_on.append(self.url)
        self._pending_url = self.search_results.get(selector)

    async def press(self, page, key, delay_ms=0):
        if key == "Enter" and self._pending_url:
            self.url = self._pending_url

    async def click_if_present(self, page, selector, timeout_ms=2_000):
        if selector in self.present:
            self.clicked.append(selector)
            return True
        return False

    async def content(self, page):
        return self.pages[min(self.index, len(self.pages) - 1)]

    def current_url(self, page):
        return self.url

    async def snapshot(self, page, label):
        self.snapshots.append(label)
        return None


@pytest.fixture
def make_renderer():
    return FakeRenderer


@pytest.fixture
def conn():
    c = sqlite3.connect(":memory:")
    db_init(c)
    yield c
    c.close()
