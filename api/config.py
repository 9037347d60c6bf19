"""
Settings for the listings API.
"""
import os


class Config:
    """API configuration; the database is the file the scraper writes."""

    DB_PATH: str = os.getenv("PROP24_DB", "prop24.db")

    API_TITLE: str = "Property24 Listings API"
    API_VERSION: str = "1.0.0"

    # Page size for /api/listings; exports and per-suburb views are capped separately
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 500
    MAX_EXPORT_ROWS: int = 10_000

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Fail fast when the scraper has not created the store yet."""
        if not os.path.exists(cls.DB_PATH):
            raise FileNotFoundError(f"Database file not found: {cls.DB_PATH}")


config = Config()
