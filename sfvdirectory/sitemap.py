"""sitemap.xml generation for the homepage and every active business."""
from __future__ import annotations

from datetime import date
from typing import Iterable, List
from xml.sax.saxutils import escape as xml_escape

from .config import SiteSettings
from .models import SitemapEntry
from .utils import iso_date, parse_iso_datetime

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
HOMEPAGE_PRIORITY = "1.0"
BUSINESS_PRIORITY = "0.8"
CHANGE_FREQUENCY = "weekly"


def _url_entry(loc: str, lastmod: str, priority: str) -> List[str]:
    return [
        "  <url>",
        f"    <loc>{xml_escape(loc)}</loc>",
        f"    <lastmod>{lastmod}</lastmod>",
        f"    <changefreq>{CHANGE_FREQUENCY}</changefreq>",
        f"    <priority>{priority}</priority>",
        "  </url>",
    ]


def build_sitemap(entries: Iterable[SitemapEntry], settings: SiteSettings, today: date) -> str:
    """Return the sitemap document; businesses without a usable timestamp get ``today``."""

    current = iso_date(today)
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">',
    ]
    lines.extend(_url_entry(settings.abs_url("/"), current, HOMEPAGE_PRIORITY))
    for entry in entries:
        updated = parse_iso_datetime(entry.updated_at)
        lastmod = iso_date(updated) if updated else current
        lines.extend(
            _url_entry(settings.abs_url(f"/business/{entry.slug}"), lastmod, BUSINESS_PRIORITY)
        )
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"
