from __future__ import annotations

from datetime import datetime, timezone

import pytest

from sfvdirectory.errors import BuildError
from sfvdirectory.models import Business, BusinessCard, BusinessHours, CategoryRef, Tag, TagAssociation
from sfvdirectory.viewmodels import (
    categorize_tags_by_type,
    category_filter_tags,
    derive_business_card,
    format_business_hours,
    format_time_12h,
    location_tag,
    matches_filters,
    today_index,
)


def assoc(name: str | None, tag_type: str | None) -> TagAssociation:
    return TagAssociation(tag=Tag(name=name, slug=None, tag_type=tag_type))


def make_business(**overrides) -> Business:
    values = dict(
        id=1,
        name="Valley Fitness",
        slug="valley-fitness",
        address="123 Ventura Blvd, Sherman Oaks, CA",
        category_id=7,
        category=CategoryRef(name="Gyms", slug="gyms"),
    )
    values.update(overrides)
    return Business(**values)


def test_categorize_keeps_supplied_order_per_bucket():
    associations = [
        assoc("Visa", "payment"),
        assoc("Encino", "location"),
        assoc("Cash", "payment"),
        assoc("Parking", "amenity"),
    ]

    categorized = categorize_tags_by_type(associations)

    assert categorized["payment"] == ["Visa", "Cash"]
    assert categorized["location"] == ["Encino"]
    assert categorized["amenity"] == ["Parking"]
    assert categorized["urgency"] == []


def test_categorize_drops_unknown_types_and_empty_joins():
    associations = [
        assoc("Mystery", "vibes"),
        assoc("Untyped", None),
        TagAssociation(tag=None),
        assoc(None, None),
        assoc("Wifi", "amenity"),
    ]

    categorized = categorize_tags_by_type(associations)

    placed = [name for names in categorized.values() for name in names]
    assert placed == ["Wifi"]


def test_categorize_places_each_tag_in_exactly_one_bucket():
    associations = [assoc(f"tag-{index}", tag_type) for index, tag_type in enumerate(
        ["payment", "amenity", "location", "specialization", "pricing", "service", "urgency"]
    )]

    categorized = categorize_tags_by_type(associations)

    placed = [name for names in categorized.values() for name in names]
    assert sorted(placed) == sorted(a.tag.name for a in associations)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("06:00", "6:00 AM"),
        ("22:00:00", "10:00 PM"),
        ("00:30", "12:30 AM"),
        ("12:05", "12:05 PM"),
    ],
)
def test_format_time_12h(value, expected):
    assert format_time_12h(value) == expected


def test_format_time_12h_rejects_garbage():
    with pytest.raises(BuildError):
        format_time_12h("noon")


def test_format_business_hours_formats_each_kind_in_weekday_order():
    rows = [
        BusinessHours(day_of_week=6, is_closed=True),
        BusinessHours(day_of_week=1, open_time="06:00", close_time="22:00"),
        BusinessHours(day_of_week=0, is_24_hour=True, is_closed=True),
    ]

    formatted = format_business_hours(rows, today=1)

    assert [(row.day, row.display, row.is_today) for row in formatted] == [
        ("Sunday", "24 Hours", False),
        ("Monday", "6:00 AM - 10:00 PM", True),
        ("Saturday", "Closed", False),
    ]


def test_format_business_hours_omits_missing_days():
    rows = [BusinessHours(day_of_week=3, open_time="09:00", close_time="17:00")]

    formatted = format_business_hours(rows, today=0)

    assert [row.day for row in formatted] == ["Wednesday"]
    assert not formatted[0].is_today


def test_format_business_hours_drops_unparseable_row_only():
    rows = [
        BusinessHours(day_of_week=2, open_time="9am", close_time="5pm"),
        BusinessHours(day_of_week=4, open_time="09:00", close_time="17:30"),
        BusinessHours(day_of_week=5),
    ]

    formatted = format_business_hours(rows, today=4)

    assert [(row.day, row.display) for row in formatted] == [("Thursday", "9:00 AM - 5:30 PM")]


def test_location_tag_prefers_first_location_and_falls_back():
    associations = [assoc("Cash", "payment"), assoc("Van Nuys", "location"), assoc("Encino", "location")]

    assert location_tag(associations) == "Van Nuys"
    assert location_tag([assoc("Cash", "payment")]) == "San Fernando Valley"
    assert location_tag([], fallback=None) is None


def test_derive_business_card_uses_fallbacks():
    business = make_business(
        category=None,
        tags=[assoc("Cash", "payment"), TagAssociation(tag=None), assoc("Tarzana", "location")],
    )

    card = derive_business_card(business)

    assert card == BusinessCard(
        name="Valley Fitness",
        slug="valley-fitness",
        description="Find Valley Fitness in the San Fernando Valley.",
        category="Business",
        location="Tarzana",
        tags=["Cash", "Tarzana"],
    )


def test_derive_business_card_keeps_real_description():
    business = make_business(description="Open gym with classes.")

    card = derive_business_card(business)

    assert card.description == "Open gym with classes."
    assert card.category == "Gyms"
    assert card.location == "San Fernando Valley"
    assert card.tags == []


def test_category_filter_tags_excludes_locations_and_dedupes():
    businesses = [
        make_business(tags=[assoc("Wifi", "amenity"), assoc("Encino", "location")]),
        make_business(id=2, slug="b", tags=[assoc("Cash", "payment"), assoc("Wifi", "amenity")]),
    ]

    assert category_filter_tags(businesses) == ["Cash", "Wifi"]


def test_matches_filters_exact_tag_and_substring_neighborhood():
    cards = [
        BusinessCard("A", "a", "", "Gyms", "North Hollywood", ["Wifi", "Cash"]),
        BusinessCard("B", "b", "", "Gyms", "Hollywood Hills", ["Wifi Plus"]),
        BusinessCard("C", "c", "", "Gyms", "Encino", ["wifi"]),
    ]

    assert [c.slug for c in cards if matches_filters(c, "wifi", "")] == ["a", "c"]
    assert [c.slug for c in cards if matches_filters(c, "", "hollywood")] == ["a", "b"]
    assert [c.slug for c in cards if matches_filters(c, "WIFI", "north")] == ["a"]
    assert [c.slug for c in cards if matches_filters(c)] == ["a", "b", "c"]


def test_today_index_counts_from_sunday():
    assert today_index(datetime(2024, 6, 2, tzinfo=timezone.utc)) == 0  # Sunday
    assert today_index(datetime(2024, 6, 3, tzinfo=timezone.utc)) == 1
    assert today_index(datetime(2024, 6, 8, tzinfo=timezone.utc)) == 6
