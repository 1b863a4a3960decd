from __future__ import annotations

from datetime import date

from sfvdirectory.config import SiteSettings
from sfvdirectory.models import SitemapEntry
from sfvdirectory.sitemap import build_sitemap


def test_sitemap_lists_homepage_then_businesses():
    settings = SiteSettings(base_url="https://example.com/")
    entries = [
        SitemapEntry(slug="bagel-barn", updated_at="2024-03-05T10:11:12.123456789+00:00"),
        SitemapEntry(slug="deli-den", updated_at=None),
    ]

    xml = build_sitemap(entries, settings, date(2025, 1, 2))

    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
    assert '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">' in xml
    assert xml.endswith("</urlset>\n")
    assert xml.count("<url>") == 3
    assert xml.count("<changefreq>weekly</changefreq>") == 3
    home, first, second = xml.split("<url>")[1:]
    assert "<loc>https://example.com</loc>" in home
    assert "<priority>1.0</priority>" in home
    assert "<lastmod>2025-01-02</lastmod>" in home
    assert "<loc>https://example.com/business/bagel-barn</loc>" in first
    assert "<lastmod>2024-03-05</lastmod>" in first
    assert "<priority>0.8</priority>" in first
    assert "<lastmod>2025-01-02</lastmod>" in second


def test_sitemap_escapes_locations_and_tolerates_bad_timestamps():
    settings = SiteSettings(base_url="https://example.com")
    entries = [SitemapEntry(slug="a&b", updated_at="not a date")]

    xml = build_sitemap(entries, settings, date(2025, 6, 1))

    assert "<loc>https://example.com/business/a&amp;b</loc>" in xml
    assert xml.count("<lastmod>2025-06-01</lastmod>") == 2


def test_sitemap_is_deterministic():
    settings = SiteSettings()
    entries = [SitemapEntry(slug="x", updated_at="2024-01-01T00:00:00Z")]

    assert build_sitemap(entries, settings, date(2025, 1, 1)) == build_sitemap(
        entries, settings, date(2025, 1, 1)
    )
