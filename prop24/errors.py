"""
Exceptions raised by the Property24 scraper.
"""


class ScraperError(Exception):
    """Base class for scraper failures."""


class RendererError(ScraperError):
    """Browser could not be launched or a page could not be opened."""


class NavigationError(ScraperError):
    """A navigation timed out or the target was unreachable."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        msg = f"Failed to navigate to {url}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ResolutionError(ScraperError):
    """No search strategy produced a listing index URL."""
