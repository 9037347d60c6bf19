#!/usr/bin/env python3
"""
Tests for the command line helpers.
"""
import logging
from decimal import Decimal

from prop24.cli import format_listing, parse_args, save_records
from prop24.config import config
from prop24.database import db_count_listings
from prop24.models import ListingRecord

logger = logging.getLogger("prop24.test")


def records():
    return [
        ListingRecord(
            listing_url=f"https://www.property24.com/for-sale/sandton/1/{i}",
            suburb="Sandton",
            total_price=Decimal(1_000_000 + i),
            bedrooms=i,
        )
        for i in range(3)
    ]


def test_save_records_summary(conn):
    recs = records()
    summary = save_records(conn, recs, logger)
    assert summary == {"saved": 3, "new": 3, "price_changes": 3, "failed": []}

    summary = save_records(conn, recs, logger)
    assert summary == {"saved": 3, "new": 0, "price_changes": 0, "failed": []}
    assert db_count_listings(conn) == 3


def test_save_records_skips_failing_record(conn):
    recs = records()
    conn.execute("DROP TABLE price_history")
    summary = save_records(conn, recs[:1], logger)
    assert summary["saved"] == 0
    assert summary["failed"] == [recs[0].listing_url]


def test_unstorable_value_does_not_stop_the_batch(conn):
    bad = ListingRecord(
        listing_url="https://www.property24.com/for-sale/sandton/1/huge",
        suburb="Sandton",
        bedrooms=10 ** 20,
    )
    recs = records()
    summary = save_records(conn, [recs[0], bad, recs[1]], logger)
    assert summary["saved"] == 2
    assert summary["failed"] == [bad.listing_url]
    assert db_count_listings(conn) == 2


def test_parse_scrape_args():
    args = parse_args(["scrape", "Sandton", "--no-headless", "-t", "5000", "--out", "x.csv"])
    assert args.command == "scrape"
    assert args.suburb == "Sandton"
    assert args.headless is False
    assert args.timeout == 5000
    assert args.out == "x.csv"
    assert args.db == config.DB_PATH


def test_parse_list_args():
    args = parse_args(["list", "Rosebank", "--db", "other.db", "--log-level", "DEBUG"])
    assert args.command == "list"
    assert args.db == "other.db"
    assert args.log_level == "DEBUG"


def test_format_listing():
    text = format_listing(1, {
        "street_address": "12 Oak St",
        "suburb": "Sandton",
        "total_price": 1250000.0,
        "listing_url": "https://www.property24.com/for-sale/x/1",
    })
    assert text.startswith("1. 12 Oak St")
    assert "Price: R1,250,000" in text
    assert "Estate: N/A" in text
    assert "Price/m²: N/A" in text
