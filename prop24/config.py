"""
Scraper configuration and settings management.
"""
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Scraper configuration."""

    # Target site
    BASE_URL: str = os.getenv("PROP24_BASE_URL", "https://www.property24.com")

    # Storage
    DB_PATH: str = os.getenv("PROP24_DB", "prop24.db")
    SCREENSHOT_ROOT: str = os.getenv("PROP24_SCREENSHOT_DIR", os.path.join("tmp", "screenshots"))

    # Browser
    HEADLESS: bool = _env_flag("HEADLESS", True)
    DEFAULT_TIMEOUT_MS: int = 30_000
    HOMEPAGE_TIMEOUT_MS: int = 15_000
    CARD_WAIT_TIMEOUT_MS: int = 10_000

    # Hard upper bound on result pages per run
    MAX_PAGES: int = 100

    # Logging
    LOG_CONSOLE: str = os.getenv("LOG_CONSOLE", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "DEBUG")
    LOG_FILE_PATH: str = os.getenv("LOG_FILE_PATH", "prop24.log")


# Global config instance
config = Config()
