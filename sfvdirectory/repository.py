"""Read access to businesses, categories, tags and hours in the data store."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Protocol, Sequence, Tuple

from .config import RELATED_BUSINESS_LIMIT
from .datastore import eq, in_, neq
from .errors import BuildError, DataAccessError
from .models import (
    ACTIVE_STATUS,
    Business,
    BusinessDetail,
    BusinessHours,
    Category,
    SitemapEntry,
    Tag,
    TagAssociation,
)

logger = logging.getLogger(__name__)

BUSINESS_COLUMNS = "*, categories (name, slug)"
BUSINESS_WITH_TAGS_COLUMNS = "*, categories (name, slug), business_tags (tags (name, slug, tag_type))"
TAG_ASSOCIATION_COLUMNS = "business_id, tags (name, slug, tag_type)"


class RowSource(Protocol):
    def select(self, table: str, columns: str = "*", *, filters=None, order=None, limit=None) -> List[dict]:
        ...

    def update(self, table: str, values, *, filters) -> None:
        ...


def _row_label(row: dict) -> str:
    for key in ("slug", "name", "id"):
        value = row.get(key)
        if value not in (None, ""):
            return str(value).strip()
    return "<unnamed business>"


def _parse_businesses(
    rows: Iterable[dict], rejects: List[Tuple[str, str]] | None = None
) -> List[Business]:
    """Parse business rows, collecting (label, reason) for each malformed one in ``rejects``."""

    businesses: List[Business] = []
    for row in rows:
        try:
            businesses.append(Business.from_dict(row))
        except BuildError as error:
            logger.warning("Skipping malformed business row %s: %s", row.get("id"), error)
            if rejects is not None:
                rejects.append((_row_label(row), str(error)))
    return businesses


class DirectoryRepository:
    """Fetch the rows each page needs; failures surface as ``DataAccessError``."""

    def __init__(self, client: RowSource) -> None:
        self.client = client

    def list_active_businesses(
        self, rejects: List[Tuple[str, str]] | None = None
    ) -> List[Business]:
        rows = self.client.select(
            "businesses",
            BUSINESS_COLUMNS,
            filters={"status": eq(ACTIVE_STATUS)},
        )
        return _parse_businesses(rows, rejects)

    def list_categories(self) -> List[Category]:
        categories: List[Category] = []
        for row in self.client.select("categories", "*", order="name"):
            try:
                categories.append(Category.from_dict(row))
            except BuildError as error:
                logger.warning("Skipping malformed category row: %s", error)
        return categories

    def list_tags(self) -> List[Tag]:
        rows = self.client.select("tags", "name, slug, tag_type", order="name")
        return [Tag.from_dict(row) for row in rows]

    def business_tags(self, business_id: object) -> List[TagAssociation]:
        rows = self.client.select(
            "business_tags",
            TAG_ASSOCIATION_COLUMNS,
            filters={"business_id": eq(business_id)},
        )
        return [TagAssociation.from_dict(row) for row in rows]

    def tags_for_businesses(self, business_ids: Sequence[object]) -> Dict[object, List[TagAssociation]]:
        if not business_ids:
            return {}
        rows = self.client.select(
            "business_tags",
            TAG_ASSOCIATION_COLUMNS,
            filters={"business_id": in_(business_ids)},
        )
        grouped: Dict[object, List[TagAssociation]] = {}
        for row in rows:
            association = TagAssociation.from_dict(row)
            grouped.setdefault(association.business_id, []).append(association)
        return grouped

    def business_hours(self, business_id: object) -> List[BusinessHours]:
        rows = self.client.select(
            "business_hours",
            "*",
            filters={"business_id": eq(business_id)},
            order="day_of_week",
        )
        hours: List[BusinessHours] = []
        for row in rows:
            try:
                hours.append(BusinessHours.from_dict(row))
            except BuildError as error:
                logger.warning("Dropping hours row for business %s: %s", business_id, error)
        return hours

    def related_businesses(
        self, business: Business, limit: int = RELATED_BUSINESS_LIMIT
    ) -> List[Business]:
        if business.category_id is None:
            return []
        rows = self.client.select(
            "businesses",
            BUSINESS_COLUMNS,
            filters={
                "category_id": eq(business.category_id),
                "id": neq(business.id),
                "status": eq(ACTIVE_STATUS),
            },
            limit=limit,
        )
        related = _parse_businesses(rows)[:limit]
        try:
            tags = self.tags_for_businesses([item.id for item in related])
        except DataAccessError as error:
            logger.warning("Related businesses of %s shown without tags: %s", business.slug, error)
            tags = {}
        for item in related:
            item.tags = tags.get(item.id, [])
        return related

    def businesses_in_category(self, category_id: object) -> List[Business]:
        rows = self.client.select(
            "businesses",
            BUSINESS_WITH_TAGS_COLUMNS,
            filters={
                "category_id": eq(category_id),
                "status": eq(ACTIVE_STATUS),
            },
            order="name",
        )
        return _parse_businesses(rows)

    def load_business_detail(self, business: Business) -> BusinessDetail:
        business.tags = self.business_tags(business.id)
        return BusinessDetail(
            business=business,
            hours=self.business_hours(business.id),
            related=self.related_businesses(business),
        )

    def sitemap_entries(self) -> List[SitemapEntry]:
        rows = self.client.select(
            "businesses",
            "slug, updated_at",
            filters={"status": eq(ACTIVE_STATUS)},
        )
        return [
            SitemapEntry(slug=str(row["slug"]).strip(), updated_at=row.get("updated_at"))
            for row in rows
            if row.get("slug")
        ]

    def set_hero_image(self, business_id: object, url: str) -> None:
        self.client.update(
            "businesses",
            {"hero_image_url": url},
            filters={"id": eq(business_id)},
        )
