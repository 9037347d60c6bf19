"""
Read-only HTTP API over the scraped Property24 listings.
"""
