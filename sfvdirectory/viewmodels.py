"""Pure transforms from raw directory rows into page-ready structures.

Nothing here performs I/O or reads the clock: callers pass "today" in so the
same rows always produce the same view models.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .config import DEFAULT_REGION, TAG_TYPES
from .errors import BuildError
from .models import (
    Business,
    BusinessCard,
    BusinessHours,
    CategorizedTags,
    FormattedHoursRow,
    Tag,
    TagAssociation,
)

LOGGER = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
FALLBACK_CATEGORY = "Business"
_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def today_index(now: datetime) -> int:
    """Return the weekday of ``now`` with Sunday as 0."""

    return (now.weekday() + 1) % 7


def _checked_tag(association: TagAssociation) -> Optional[Tag]:
    tag = association.tag
    if tag is None:
        return None
    if not tag.name and tag.tag_type not in TAG_TYPES:
        raise BuildError(f"Tag association has neither a name nor a known type: {tag!r}")
    return tag


def _valid_tags(associations: Iterable[TagAssociation]) -> List[Tag]:
    tags: List[Tag] = []
    for association in associations or ():
        try:
            tag = _checked_tag(association)
        except BuildError as error:
            LOGGER.warning("Dropping tag: %s", error)
            continue
        if tag is not None and tag.name:
            tags.append(tag)
    return tags


def categorize_tags_by_type(associations: Iterable[TagAssociation]) -> CategorizedTags:
    """Group tag names by ``tag_type`` preserving the order they were supplied in."""

    categorized: CategorizedTags = {tag_type: [] for tag_type in TAG_TYPES}
    for tag in _valid_tags(associations):
        bucket = categorized.get(tag.tag_type or "")
        if bucket is None:
            LOGGER.debug("Ignoring tag %s with unknown type %r", tag.name, tag.tag_type)
            continue
        bucket.append(tag.name)
    return categorized


def format_time_12h(value: str) -> str:
    """Render ``HH:MM[:SS]`` as ``H:MM AM``."""

    text = (value or "").strip()
    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        hour = parsed.hour % 12 or 12
        suffix = "AM" if parsed.hour < 12 else "PM"
        return f"{hour}:{parsed.minute:02d} {suffix}"
    raise BuildError(f"Unrecognized time value {value!r}")


def _hours_display(row: BusinessHours) -> str:
    if row.is_24_hour:
        return "24 Hours"
    if row.is_closed:
        return "Closed"
    if not row.open_time or not row.close_time:
        raise BuildError(f"{DAY_NAMES[row.day_of_week]} has no open/close time")
    return f"{format_time_12h(row.open_time)} - {format_time_12h(row.close_time)}"


def format_business_hours(rows: Sequence[BusinessHours], today: int) -> List[FormattedHoursRow]:
    """Return one display row per weekday present in ``rows``, Sunday first.

    Missing weekdays are left out rather than shown as closed. If the data
    store hands back duplicate rows for a weekday the first one wins.
    """

    by_day: dict[int, BusinessHours] = {}
    for row in rows:
        by_day.setdefault(row.day_of_week, row)
    formatted: List[FormattedHoursRow] = []
    for day in sorted(by_day):
        row = by_day[day]
        try:
            display = _hours_display(row)
        except BuildError as error:
            LOGGER.warning("Dropping hours row: %s", error)
            continue
        formatted.append(
            FormattedHoursRow(day=DAY_NAMES[day], display=display, is_today=day == today)
        )
    return formatted


def location_tags(associations: Iterable[TagAssociation]) -> List[str]:
    return [tag.name for tag in _valid_tags(associations) if tag.tag_type == "location"]


def location_tag(associations: Iterable[TagAssociation], fallback: Optional[str] = DEFAULT_REGION) -> Optional[str]:
    """Name of the first location tag, or ``fallback``."""

    names = location_tags(associations)
    return names[0] if names else fallback


def tag_names(associations: Iterable[TagAssociation]) -> List[str]:
    return [tag.name for tag in _valid_tags(associations)]


def business_description(business: Business, region: str = DEFAULT_REGION) -> str:
    return business.description or f"Find {business.name} in the {region}."


def derive_business_card(business: Business, region: str = DEFAULT_REGION) -> BusinessCard:
    return BusinessCard(
        name=business.name,
        slug=business.slug,
        description=business_description(business, region),
        category=business.category_name or FALLBACK_CATEGORY,
        location=location_tag(business.tags, fallback=region) or region,
        tags=tag_names(business.tags),
    )


def category_filter_tags(businesses: Iterable[Business]) -> List[str]:
    """Sorted names of the non-location tags used by ``businesses``."""

    names = set()
    for business in businesses:
        for tag in _valid_tags(business.tags):
            if tag.tag_type != "location":
                names.add(tag.name)
    return sorted(names)


def matches_filters(card: BusinessCard, tag: str = "", neighborhood: str = "") -> bool:
    """Mirror of the category page filter script.

    A card matches when one of its tags equals ``tag`` ignoring case and its
    location contains ``neighborhood`` ignoring case. Blank selections match
    every card.
    """

    selected_tag = (tag or "").lower()
    selected_neighborhood = (neighborhood or "").lower()
    if selected_tag and not any(name.lower() == selected_tag for name in card.tags):
        return False
    if selected_neighborhood and selected_neighborhood not in card.location.lower():
        return False
    return True
