"""Data models used by the directory generator."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import BuildError

ACTIVE_STATUS = "active"


def _optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _missing_identity(payload: dict) -> List[str]:
    missing = ["id"] if payload.get("id") in (None, "") else []
    missing.extend(key for key in ("name", "slug") if not payload.get(key))
    return missing


def _flag(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes"}
    return bool(value)


@dataclass(frozen=True)
class Tag:
    """A named attribute a business can carry, bucketed by ``tag_type``."""

    name: Optional[str]
    slug: Optional[str] = None
    tag_type: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "Tag":
        return cls(
            name=_optional_text(payload.get("name")),
            slug=_optional_text(payload.get("slug")),
            tag_type=_optional_text(payload.get("tag_type")),
        )


@dataclass(frozen=True)
class TagAssociation:
    """One business <-> tag link. ``tag`` is ``None`` when the join came back empty."""

    tag: Optional[Tag]
    business_id: Optional[object] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "TagAssociation":
        raw_tag = payload.get("tags")
        tag = Tag.from_dict(raw_tag) if isinstance(raw_tag, dict) else None
        return cls(tag=tag, business_id=payload.get("business_id"))


@dataclass(frozen=True)
class CategoryRef:
    name: Optional[str]
    slug: Optional[str] = None


@dataclass
class Business:
    """A directory listing row with its embedded category reference."""

    id: object
    name: str
    slug: str
    address: str = ""
    description: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    status: str = ACTIVE_STATUS
    category_id: Optional[object] = None
    category: Optional[CategoryRef] = None
    updated_at: Optional[str] = None
    hero_image_url: Optional[str] = None
    tags: List[TagAssociation] = field(default_factory=list)

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS

    @classmethod
    def from_dict(cls, payload: dict) -> "Business":
        missing = _missing_identity(payload)
        if missing:
            raise BuildError(f"Business row is missing {', '.join(missing)}")
        raw_category = payload.get("categories") or payload.get("category")
        category = None
        if isinstance(raw_category, dict):
            category = CategoryRef(
                name=_optional_text(raw_category.get("name")),
                slug=_optional_text(raw_category.get("slug")),
            )
        raw_tags = payload.get("business_tags") or []
        tags = [
            TagAssociation.from_dict(item)
            for item in raw_tags
            if isinstance(item, dict)
        ]
        return cls(
            id=payload["id"],
            name=str(payload["name"]).strip(),
            slug=str(payload["slug"]).strip(),
            address=str(payload.get("address") or "").strip(),
            description=_optional_text(payload.get("description")),
            phone=_optional_text(payload.get("phone")),
            website=_optional_text(payload.get("website")),
            status=str(payload.get("status") or "").strip().lower(),
            category_id=payload.get("category_id"),
            category=category,
            updated_at=_optional_text(payload.get("updated_at")),
            hero_image_url=_optional_text(payload.get("hero_image_url")),
            tags=tags,
        )


@dataclass(frozen=True)
class Category:
    id: object
    name: str
    slug: str
    description: str = ""

    @classmethod
    def from_dict(cls, payload: dict) -> "Category":
        missing = _missing_identity(payload)
        if missing:
            raise BuildError(f"Category row is missing {', '.join(missing)}")
        return cls(
            id=payload["id"],
            name=str(payload["name"]).strip(),
            slug=str(payload["slug"]).strip(),
            description=str(payload.get("description") or "").strip(),
        )


@dataclass(frozen=True)
class BusinessHours:
    """Opening hours for one weekday (0=Sunday .. 6=Saturday)."""

    day_of_week: int
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    is_closed: bool = False
    is_24_hour: bool = False

    @classmethod
    def from_dict(cls, payload: dict) -> "BusinessHours":
        raw_day = payload.get("day_of_week")
        try:
            day = int(raw_day)
        except (TypeError, ValueError):
            raise BuildError(f"Invalid day_of_week {raw_day!r}") from None
        if not 0 <= day <= 6:
            raise BuildError(f"day_of_week out of range: {day}")
        return cls(
            day_of_week=day,
            open_time=_optional_text(payload.get("open_time")),
            close_time=_optional_text(payload.get("close_time")),
            is_closed=_flag(payload.get("is_closed")),
            is_24_hour=_flag(payload.get("is_24_hour")),
        )


@dataclass(frozen=True)
class SitemapEntry:
    slug: str
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class FormattedHoursRow:
    day: str
    display: str
    is_today: bool


@dataclass(frozen=True)
class BusinessCard:
    """Minimal projection of a business shipped to the category filter script."""

    name: str
    slug: str
    description: str
    category: str
    location: str
    tags: List[str]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "category": self.category,
            "location": self.location,
            "tags": list(self.tags),
        }


@dataclass
class BusinessDetail:
    """Everything the business page needs, gathered by the repository."""

    business: Business
    hours: List[BusinessHours] = field(default_factory=list)
    related: List[Business] = field(default_factory=list)

    @property
    def tags(self) -> List[TagAssociation]:
        return self.business.tags


CategorizedTags = Dict[str, List[str]]
