"""
HTML parsing of Property24 results pages into ListingRecord objects.

Pure functions of the markup: no browser or network access. Every field is
looked up through an ordered list of selectors so that markup drift degrades
a field to None instead of breaking the page.
"""
import logging
import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .config import config
from .models import ListingRecord, PageScan
from .utils import (
    BATHROOMS_RE,
    BEDROOMS_RE,
    LEVIES_RE,
    RATES_RE,
    classify_status,
    clean_text,
    extract_number,
    is_absolute_url,
    parse_address,
    parse_date,
    parse_floor_size,
    parse_labelled_amount,
    parse_price,
)

logger = logging.getLogger(__name__)


# Tried in order; the first strategy with a linked container wins
CONTAINER_SELECTORS = [
    '[data-test-id="property-card"]',
    ".property-card",
    '[class*="property"]',
    "article",
]

LISTING_LINK_SELECTORS = ['a[href*="/for-sale/"]']
TITLE_LINK_SELECTORS = ['h2', '[class*="title"]', 'a[href*="/p/"]']
ADDRESS_SELECTORS = ['[class*="address"]', '[itemprop="streetAddress"]']
PRICE_SELECTORS = ['[class*="price"]', '[itemprop="price"]']
TYPE_SELECTORS = ['[class*="property-type"]', '[class*="type"]', '[class*="title"]', "span"]
FEATURE_SELECTORS = ['[class*="feature"]', "li"]
STATUS_SELECTORS = ['[class*="status"]', '[class*="badge"]', "span"]
DATE_ATTR_SELECTORS = ["time[datetime]", '[class*="date"][datetime]']
DATE_TEXT_SELECTORS = ['[class*="date"]', '[class*="listed"]', "time"]

PROPERTY_TYPE_KEYWORDS = (
    "house", "apartment", "flat", "townhouse", "cluster", "duplex",
    "simplex", "penthouse", "land", "farm",
)
# Whole words only, so "Highlands" or "Flatlands" never read as a type
PROPERTY_TYPE_RE = re.compile(r"\b(?:%s)s?\b" % "|".join(PROPERTY_TYPE_KEYWORDS), re.I)

DRIFT_WARNING = "No property elements found, page structure may have changed"


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return clean_text(el.get_text(" ", strip=True))


def _pick(card: Tag, selectors: Iterable[str]) -> Optional[Tag]:
    for sel in selectors:
        el = card.select_one(sel)
        if el is not None:
            return el
    return None


def _usable(href: Optional[str]) -> bool:
    href = (href or "").strip()
    return bool(href) and not href.startswith(("#", "javascript:"))


def _listing_hrefs(el: Tag) -> List[str]:
    return [a["href"].strip() for sel in LISTING_LINK_SELECTORS
            for a in el.select(sel) if _usable(a.get("href"))]


def _title_hrefs(el: Tag) -> List[str]:
    hrefs = []
    for sel in TITLE_LINK_SELECTORS:
        for title in el.select(sel):
            if title.name == "a" and _usable(title.get("href")):
                link = title
            else:
                link = title.find("a", href=True) or title.find_parent("a", href=True)
            if link is not None and _usable(link.get("href")):
                hrefs.append(link["href"].strip())
    return hrefs


def candidate_hrefs(el: Tag) -> List[str]:
    """
    Hrefs a listing URL would be taken from, best first: /for-sale/ links,
    else title links.
    """
    return _listing_hrefs(el) or _title_hrefs(el)


def _collapse(elements: List[Tag]) -> List[Tag]:
    """
    Keep one element per listing: wrappers linking to several listings are
    dropped, and matches nested inside a kept match are folded into it.
    """
    singles = [el for el in elements if len(set(candidate_hrefs(el))) <= 1]
    chosen = set(id(el) for el in singles)
    return [el for el in singles if not any(id(p) in chosen for p in el.parents)]


def select_containers(soup: BeautifulSoup) -> List[Tag]:
    """
    Return listing containers from the first selector strategy that yields
    at least one linked container. Link-less matches from a winning
    strategy are kept so they are counted as attempted.
    """
    for sel in CONTAINER_SELECTORS:
        found = _collapse(soup.select(sel))
        if any(candidate_hrefs(el) for el in found):
            logger.debug(f"Container strategy {sel!r} matched {len(found)} elements")
            return found
        if found:
            logger.debug(f"Container strategy {sel!r} matched only unlinked elements, trying next")
    return []


def extract_listing_url(card: Tag, base_url: str) -> Optional[str]:
    """Prefer a /for-sale/ link; fall back to the title link."""
    hrefs = candidate_hrefs(card)
    if not hrefs:
        return None
    url = urljoin(base_url.rstrip("/") + "/", hrefs[0])
    return url if is_absolute_url(url) else None


def _property_type(card: Tag) -> Optional[str]:
    for sel in TYPE_SELECTORS:
        for el in card.select(sel):
            text = _text(el)
            if PROPERTY_TYPE_RE.search(text):
                return text
    return None


def _status(card: Tag) -> Optional[str]:
    for sel in STATUS_SELECTORS:
        for el in card.select(sel):
            status = classify_status(_text(el))
            if status:
                return status
    return None


def _listing_date(card: Tag):
    for sel in DATE_ATTR_SELECTORS:
        el = card.select_one(sel)
        if el is not None:
            parsed = parse_date(el.get("datetime"))
            if parsed:
                return parsed
    return parse_date(_text(_pick(card, DATE_TEXT_SELECTORS)))


def _feature_text(card: Tag) -> str:
    for sel in FEATURE_SELECTORS:
        found = card.select(sel)
        if found:
            return " | ".join(clean_text(el.get_text(" | ", strip=True)) for el in found)
    return ""


def parse_container(card: Tag, default_suburb: str, base_url: str) -> Optional[ListingRecord]:
    """Build a record from one listing container; None when it has no URL."""
    listing_url = extract_listing_url(card, base_url)
    if not listing_url:
        return None

    address = parse_address(_text(_pick(card, ADDRESS_SELECTORS)))

    price_el = _pick(card, PRICE_SELECTORS)
    if price_el is not None and price_el.name == "meta":
        price_text = price_el.get("content") or ""
        if price_text and not price_text.lstrip().startswith("R"):
            price_text = "R " + price_text
    else:
        price_text = _text(price_el)
    total_price, price_per_sqm = parse_price(price_text)

    card_text = _text(card)
    # Fragment-separated so numbers from neighbouring elements never merge
    fragments = clean_text(card.get_text(" | ", strip=True))
    features = _feature_text(card)

    bedrooms = extract_number(features, BEDROOMS_RE)
    if bedrooms is None:
        bedrooms = extract_number(fragments, BEDROOMS_RE)
    bathrooms = extract_number(features, BATHROOMS_RE)
    if bathrooms is None:
        bathrooms = extract_number(fragments, BATHROOMS_RE)
    floor_size = parse_floor_size(features)
    if floor_size is None:
        floor_size = parse_floor_size(fragments)

    return ListingRecord(
        listing_url=listing_url,
        street_address=address.street,
        estate_complex=address.estate,
        suburb=address.suburb or default_suburb,
        city=address.city,
        postal_code=address.postal_code,
        floor_size_sqm=floor_size,
        total_price=total_price,
        price_per_sqm=price_per_sqm,
        rates_and_taxes=parse_labelled_amount(card_text, RATES_RE),
        levies=parse_labelled_amount(card_text, LEVIES_RE),
        property_type=_property_type(card),
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        status=_status(card),
        listing_date=_listing_date(card),
    )


def scan_page(html: str, default_suburb: str, base_url: str = config.BASE_URL) -> PageScan:
    """Parse one results page, recording how many containers were attempted."""
    scan = PageScan()
    soup = BeautifulSoup(html or "", "html.parser")
    containers = select_containers(soup)
    if not containers:
        logger.warning(f">>> {DRIFT_WARNING}")
        scan.warnings.append(DRIFT_WARNING)
        return scan

    scan.attempted = len(containers)
    for idx, card in enumerate(containers):
        try:
            record = parse_container(card, default_suburb, base_url)
        except Exception as e:
            msg = f"Failed to parse property element #{idx}: {e}"
            logger.warning(f">>> {msg}")
            scan.warnings.append(msg)
            continue
        if record is None:
            logger.debug(f"Skipping property element #{idx}: no listing URL")
            continue
        scan.records.append(record)
    return scan


def extract_listings(html: str, default_suburb: str, base_url: str = config.BASE_URL) -> List[ListingRecord]:
    """Return the listing records found in a rendered results page."""
    return scan_page(html, default_suburb, base_url).records
