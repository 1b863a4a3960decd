"""Hero image backfill, run as its own step before pages are generated."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, Tuple

from .config import DEFAULT_HERO_IMAGE, DEFAULT_HERO_IMAGES
from .errors import DataAccessError
from .repository import DirectoryRepository

LOGGER = logging.getLogger(__name__)


class ImageLookup(Protocol):
    def lookup(self, query: str) -> Optional[str]:
        ...


class KeywordImageLookup:
    """Pick a stock image by the first keyword found in the query."""

    def __init__(
        self,
        table: Sequence[Tuple[str, str]] = DEFAULT_HERO_IMAGES,
        default: Optional[str] = DEFAULT_HERO_IMAGE,
    ) -> None:
        self.table = tuple((keyword.lower(), url) for keyword, url in table)
        self.default = default

    def lookup(self, query: str) -> Optional[str]:
        lowered = (query or "").lower()
        for keyword, url in self.table:
            if keyword in lowered:
                return url
        return self.default


@dataclass
class BackfillResult:
    updated: int = 0
    skipped: int = 0
    failed: int = 0


def image_query(name: str, category: Optional[str], region: str) -> str:
    return " ".join(part for part in (name, category or "", region) if part)


def backfill_hero_images(
    repository: DirectoryRepository,
    lookup: ImageLookup,
    *,
    region: str,
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> BackfillResult:
    """Assign a hero image to every active business that lacks one.

    The initial fetch propagates ``DataAccessError``; a failed update only
    skips that business.
    """

    businesses = repository.list_active_businesses()
    result = BackfillResult()
    total = len(businesses)
    for index, business in enumerate(businesses, start=1):
        if business.hero_image_url:
            LOGGER.debug("[%s/%s] %s already has a hero image", index, total, business.slug)
            result.skipped += 1
            continue
        url = lookup.lookup(image_query(business.name, business.category_name, region))
        if not url:
            LOGGER.info("[%s/%s] No image found for %s", index, total, business.slug)
            result.skipped += 1
            continue
        try:
            repository.set_hero_image(business.id, url)
        except DataAccessError as error:
            LOGGER.error("[%s/%s] Failed to update %s: %s", index, total, business.slug, error)
            result.failed += 1
            continue
        LOGGER.info("[%s/%s] %s -> %s", index, total, business.slug, url)
        result.updated += 1
        if delay:
            sleep(delay)
    return result
