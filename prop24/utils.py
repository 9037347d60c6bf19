"""
Utility functions for text processing, field parsing, and logging.

All parsers are total: they return None when the input does not match
rather than raising.
"""
import logging
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional, Pattern, Tuple
from urllib.parse import urlparse


def init_logger(
    name: str = "prop24",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "prop24.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s.replace("\xa0", " "))
    return s.strip()


def sanitize_label(s: str) -> str:
    """Make a string safe for use in a file or directory name."""
    return re.sub(r"[^a-zA-Z0-9-]", "-", s or "")


def is_absolute_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# --- address ----------------------------------------------------------------

class AddressParts(NamedTuple):
    street: Optional[str] = None
    estate: Optional[str] = None
    suburb: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None


def parse_address(address_text: Optional[str]) -> AddressParts:
    """
    Split a comma separated address positionally.

    "12 Oak St, Oakwood Estate, Sandton, Johannesburg, 2196" maps to
    street, estate, suburb, city and postal code in that order. Missing
    trailing segments stay None.
    """
    text = clean_text(address_text)
    if not text:
        return AddressParts()
    parts = [p.strip() or None for p in text.split(",")]
    parts = (parts + [None] * 5)[:5]
    return AddressParts(*parts)


# --- numbers ----------------------------------------------------------------

# Digits with optional space or comma thousands groups, optional decimals
_NUM = r"\d+(?:[ ,]\d{3})*(?:\.\d+)?"

RAND_AMOUNT_RE = re.compile(rf"\bR\s*({_NUM})")
PER_AREA_RE = re.compile(rf"\bR\s*({_NUM})\s*(?:[Pp]er\s*|/\s*)m(?:²|2)")
RATES_RE = re.compile(rf"rates\s*(?:and|&)\s*taxes\s*:?\s*R\s*({_NUM})", re.I)
LEVIES_RE = re.compile(rf"levies\s*:?\s*R\s*({_NUM})", re.I)
BEDROOMS_RE = re.compile(r"(?<![\d.])(\d+)\s*bed", re.I)
BATHROOMS_RE = re.compile(r"(?<![\d.])(\d+)\s*bath", re.I)
FLOOR_SIZE_RE = re.compile(rf"({_NUM})\s*(?:m²|m2|sqm)(?![a-z])", re.I)


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """Parse a money or size figure, dropping currency marks and separators."""
    if not text:
        return None
    s = re.sub(r"(ZAR|R|\s|,)", "", text.replace("\xa0", " "))
    s = s.rstrip(".")
    if not s:
        return None
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def parse_price(price_text: Optional[str]) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """
    Parse listing price text into (total_price, price_per_sqm).

    Only Rand amounts count; text without an "R" marker yields (None, None).
    A per-area figure is never reused as the total.
    """
    text = clean_text(price_text)
    if not text:
        return (None, None)

    per_area = list(PER_AREA_RE.finditer(text))
    per_sqm = parse_amount(per_area[0].group(1)) if per_area else None

    total = None
    for am in RAND_AMOUNT_RE.finditer(text):
        if any(pm.start() <= am.start() < pm.end() for pm in per_area):
            continue
        total = parse_amount(am.group(1))
        break

    return (total, per_sqm)


def parse_labelled_amount(text: Optional[str], pattern: Pattern) -> Optional[Decimal]:
    """Return the Rand amount captured by `pattern`, e.g. RATES_RE or LEVIES_RE."""
    if not text:
        return None
    m = pattern.search(clean_text(text))
    return parse_amount(m.group(1)) if m else None


def extract_number(text: Optional[str], pattern: Pattern) -> Optional[int]:
    """Return the first integer captured by `pattern`."""
    if not text:
        return None
    m = pattern.search(text)
    if not m:
        return None
    try:
        return int(m.group(1))
    except ValueError:
        return None


def parse_floor_size(text: Optional[str]) -> Optional[Decimal]:
    """First number before an area unit, ignoring "R x per m²" price fragments."""
    if not text:
        return None
    stripped = PER_AREA_RE.sub(" ", clean_text(text))
    m = FLOOR_SIZE_RE.search(stripped)
    return parse_amount(m.group(1)) if m else None


# --- status / dates ---------------------------------------------------------

def classify_status(text: Optional[str]) -> Optional[str]:
    """Map badge text to "sold" or "under_offer"; anything else is None."""
    if not text:
        return None
    t = text.lower()
    if "sold" in t:
        return "sold"
    if "offer" in t:
        return "under_offer"
    return None


DMY_RE = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})")


def parse_date(date_text: Optional[str]) -> Optional[date]:
    """
    Parse an ISO timestamp (when the text holds a "T" separator) or a
    day/month/year date. Anything else yields None.
    """
    text = clean_text(date_text)
    if not text:
        return None

    if "T" in text:
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass

    m = DMY_RE.search(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    return None
