#!/usr/bin/env python3
"""
Tests for parsing rendered results pages into listing records.
"""
from datetime import date
from decimal import Decimal

from prop24.extractor import DRIFT_WARNING, extract_listings, scan_page, select_containers
from prop24.models import ListingRecord

BASE = "https://www.property24.com"


def card(href="/for-sale/sandton/johannesburg/gauteng/1/114000001",
         address="12 Oak St, Oakwood Estate, Sandton, Johannesburg, 2196",
         price="R 1,250,000", extra=""):
    link = f'<a href="{href}">View</a>' if href else "<span>No link</span>"
    return f"""
    <div data-test-id="property-card">
      {link}
      <div class="p24_address">{address}</div>
      <div class="p24_price">{price}</div>
      {extra}
    </div>
    """


def page(*cards):
    return f"<html><body><div class='results'>{''.join(cards)}</div></body></html>"


FULL_EXTRA = """
  <span class="p24_propertyType">3 Bedroom Townhouse</span>
  <ul class="p24_features">
    <li>3 Bedrooms</li><li>2 Bathrooms</li><li>145 m²</li>
  </ul>
  <span class="p24_status">Under Offer</span>
  <time datetime="2024-03-15T08:00:00">15 March 2024</time>
  <p>Rates and Taxes: R 1 250 Levies: R 2 100</p>
"""


def test_full_card_is_extracted():
    records = extract_listings(page(card(extra=FULL_EXTRA)), "Sandton", BASE)
    assert len(records) == 1
    rec = records[0]
    assert isinstance(rec, ListingRecord)
    assert rec.listing_url == BASE + "/for-sale/sandton/johannesburg/gauteng/1/114000001"
    assert rec.street_address == "12 Oak St"
    assert rec.estate_complex == "Oakwood Estate"
    assert rec.suburb == "Sandton"
    assert rec.city == "Johannesburg"
    assert rec.postal_code == "2196"
    assert rec.total_price == Decimal("1250000")
    assert rec.price_per_sqm is None
    assert rec.property_type == "3 Bedroom Townhouse"
    assert rec.bedrooms == 3
    assert rec.bathrooms == 2
    assert rec.floor_size_sqm == Decimal("145")
    assert rec.status == "under_offer"
    assert rec.listing_date == date(2024, 3, 15)
    assert rec.rates_and_taxes == Decimal("1250")
    assert rec.levies == Decimal("2100")


def test_absolute_links_are_kept():
    href = "https://www.property24.com/for-sale/x/y/z/1/2"
    records = extract_listings(page(card(href=href)), "Sandton", BASE)
    assert records[0].listing_url == href


def test_card_without_link_is_skipped():
    html = page(card(), card(href=None), card(href="/for-sale/a/b/c/1/3"))
    scan = scan_page(html, "Sandton", BASE)
    assert scan.attempted == 3
    assert len(scan.records) == 2
    assert [r.listing_url for r in scan.records] == [
        BASE + "/for-sale/sandton/johannesburg/gauteng/1/114000001",
        BASE + "/for-sale/a/b/c/1/3",
    ]


def test_title_link_fallback():
    html = page("""
    <div data-test-id="property-card">
      <h2><a href="/p/12345">Lovely home</a></h2>
      <div class="p24_price">R 950 000</div>
    </div>
    """)
    records = extract_listings(html, "Sandton", BASE)
    assert records[0].listing_url == BASE + "/p/12345"
    assert records[0].total_price == Decimal("950000")


def test_title_wrapped_in_link_fallback():
    html = page("""
    <div data-test-id="property-card">
      <a href="/p/777"><h2>Wrapped title</h2></a>
    </div>
    """)
    assert extract_listings(html, "Sandton", BASE)[0].listing_url == BASE + "/p/777"


def test_suburb_defaults_to_query_when_address_is_short():
    records = extract_listings(page(card(address="12 Oak St")), "Rosebank", BASE)
    assert records[0].street_address == "12 Oak St"
    assert records[0].suburb == "Rosebank"


def test_sparse_card_leaves_fields_absent():
    html = page(card(address="", price="POA"))
    rec = extract_listings(html, "Sandton", BASE)[0]
    assert rec.street_address is None
    assert rec.total_price is None
    assert rec.bedrooms is None
    assert rec.status is None
    assert rec.listing_date is None


def test_sold_beats_offer():
    extra = '<span class="p24_status">Sold, was under offer</span>'
    rec = extract_listings(page(card(extra=extra)), "Sandton", BASE)[0]
    assert rec.status == "sold"


def test_price_per_square_metre():
    rec = extract_listings(page(card(price="R 1 250 000 R 12 500 per m²")), "Sandton", BASE)[0]
    assert rec.total_price == Decimal("1250000")
    assert rec.price_per_sqm == Decimal("12500")


def test_listed_date_text():
    extra = '<div class="listed-on">Listed 01/02/2024</div>'
    rec = extract_listings(page(card(extra=extra)), "Sandton", BASE)[0]
    assert rec.listing_date == date(2024, 2, 1)


def test_no_containers_reports_drift():
    scan = scan_page("<html><body><p>Nothing here</p></body></html>", "Sandton", BASE)
    assert scan.records == []
    assert scan.attempted == 0
    assert scan.warnings == [DRIFT_WARNING]


def test_class_substring_fallback_ignores_wrappers_and_nested_matches():
    html = """
    <div class="property-list">
      <div class="property-tile">
        <a href="/for-sale/a/1">One</a><span class="property-type">House</span>
      </div>
      <div class="property-tile">
        <a href="/for-sale/b/2">Two</a><span class="property-type">Apartment</span>
      </div>
    </div>
    """
    from bs4 import BeautifulSoup
    containers = select_containers(BeautifulSoup(html, "html.parser"))
    assert len(containers) == 2
    records = extract_listings(html, "Sandton", BASE)
    assert [r.property_type for r in records] == ["House", "Apartment"]


def test_article_fallback():
    html = "<article><a href='/for-sale/c/3'>Three</a></article>"
    records = extract_listings(html, "Sandton", BASE)
    assert records[0].listing_url == BASE + "/for-sale/c/3"


def test_container_failure_does_not_abort_page(monkeypatch):
    import prop24.extractor as extractor

    real = extractor.parse_address
    calls = {"n": 0}

    def flaky(text):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("boom")
        return real(text)

    monkeypatch.setattr(extractor, "parse_address", flaky)
    scan = scan_page(page(card(), card(href="/for-sale/a/b/c/1/3")), "Sandton", BASE)
    assert scan.attempted == 2
    assert len(scan.records) == 1
    assert scan.records[0].listing_url.endswith("/for-sale/a/b/c/1/3")
    assert any("boom" in w for w in scan.warnings)


def test_wrapper_around_title_linked_cards_is_not_a_listing():
    cards = "".join(
        f'<div class="property-tile"><h2><a href="/p/{n}">Home {n}</a></h2>'
        f'<div class="p24_price">R {n} 000</div></div>'
        for n in (111, 222, 333)
    )
    html = f'<div class="property-results">{cards}</div>'
    records = extract_listings(html, "Sandton", BASE)
    assert [r.listing_url for r in records] == [BASE + "/p/111", BASE + "/p/222", BASE + "/p/333"]
    assert [r.total_price for r in records] == [Decimal("111000"), Decimal("222000"), Decimal("333000")]


def test_unlinked_match_does_not_block_later_strategies():
    html = """
    <form class="property-search-bar"><input name="q"></form>
    <article><a href="/for-sale/sandton/1">One</a></article>
    <article><a href="/for-sale/sandton/2">Two</a></article>
    """
    scan = scan_page(html, "Sandton", BASE)
    assert [r.listing_url for r in scan.records] == [
        BASE + "/for-sale/sandton/1",
        BASE + "/for-sale/sandton/2",
    ]
    assert scan.warnings == []


def test_only_unlinked_matches_is_drift():
    scan = scan_page('<div class="property-search"><p>Search</p></div>', "Sandton", BASE)
    assert scan.records == []
    assert scan.warnings == [DRIFT_WARNING]


def test_property_type_needs_whole_word():
    extra = '<span class="suburb">Bryanston Highlands</span><span class="kind">Flatlet Houses</span>'
    rec = extract_listings(page(card(extra=extra)), "Sandton", BASE)[0]
    assert rec.property_type == "Flatlet Houses"

    extra = '<span class="suburb">Flatlands, Island View</span>'
    rec = extract_listings(page(card(extra=extra)), "Sandton", BASE)[0]
    assert rec.property_type is None
