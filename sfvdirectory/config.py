"""Configuration helpers for the directory site generator."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from .utils import env_float, env_str

BASE_DIR = Path(__file__).resolve().parent.parent
OUTPUT_DIR = BASE_DIR / "public"
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

BUSINESS_TEMPLATE_PATH = TEMPLATE_DIR / "business.html"
CATEGORY_TEMPLATE_PATH = TEMPLATE_DIR / "category.html"

DEFAULT_SITE_NAME = "San Fernando Valley Directory"
DEFAULT_BASE_URL = "https://sanfernandovalley.xyz"
DEFAULT_REGION = "San Fernando Valley"
DEFAULT_REQUEST_TIMEOUT = 15.0
RELATED_BUSINESS_LIMIT = 5

TAG_TYPES: Tuple[str, ...] = (
    "payment",
    "amenity",
    "location",
    "specialization",
    "pricing",
    "service",
    "urgency",
)

# Keyword -> placeholder hero image, checked in order against the lowercased query.
DEFAULT_HERO_IMAGES: Tuple[Tuple[str, str], ...] = (
    ("gym", "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=800&h=600&fit=crop"),
    ("fitness", "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=800&h=600&fit=crop"),
    ("restaurant", "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=800&h=600&fit=crop"),
    ("pizza", "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=800&h=600&fit=crop"),
    ("auto", "https://images.unsplash.com/photo-1486754735734-325b5831c3ad?w=800&h=600&fit=crop"),
    ("repair", "https://images.unsplash.com/photo-1486754735734-325b5831c3ad?w=800&h=600&fit=crop"),
    ("beauty", "https://images.unsplash.com/photo-1560066984-138dadb4c035?w=800&h=600&fit=crop"),
    ("salon", "https://images.unsplash.com/photo-1560066984-138dadb4c035?w=800&h=600&fit=crop"),
    ("home", "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=800&h=600&fit=crop"),
    ("services", "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=800&h=600&fit=crop"),
)
DEFAULT_HERO_IMAGE = "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=800&h=600&fit=crop"


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8").lstrip("\ufeff")


@dataclass(frozen=True)
class SiteSettings:
    """Site level settings handed to the generator at construction."""

    site_name: str = DEFAULT_SITE_NAME
    base_url: str = DEFAULT_BASE_URL
    region: str = DEFAULT_REGION
    business_template: str = field(default="", repr=False)
    category_template: str = field(default="", repr=False)

    def abs_url(self, path: str) -> str:
        base = (self.base_url or DEFAULT_BASE_URL).rstrip("/")
        if not path or path == "/":
            return base
        if path.startswith("/"):
            return f"{base}{path}"
        return f"{base}/{path}"


@dataclass(frozen=True)
class DataStoreSettings:
    """Connection details for the PostgREST endpoint backing the directory."""

    url: str
    api_key: str
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"


def load_settings(
    *,
    business_template: str | None = None,
    category_template: str | None = None,
) -> SiteSettings:
    """Build site settings from the environment and the bundled templates."""

    return SiteSettings(
        site_name=env_str("SITE_NAME", DEFAULT_SITE_NAME) or DEFAULT_SITE_NAME,
        base_url=env_str("SITE_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
        region=env_str("SITE_REGION", DEFAULT_REGION) or DEFAULT_REGION,
        business_template=(
            business_template
            if business_template is not None
            else read_template(BUSINESS_TEMPLATE_PATH)
        ),
        category_template=(
            category_template
            if category_template is not None
            else read_template(CATEGORY_TEMPLATE_PATH)
        ),
    )


def load_datastore_settings() -> DataStoreSettings:
    """Read data-store credentials, raising ``SystemExit`` when missing."""

    url = env_str("SUPABASE_URL")
    api_key = env_str("SUPABASE_ANON_KEY")
    if not url or not api_key:
        raise SystemExit("SUPABASE_URL and SUPABASE_ANON_KEY must be set")
    return DataStoreSettings(
        url=url,
        api_key=api_key,
        timeout=env_float("SUPABASE_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
    )
