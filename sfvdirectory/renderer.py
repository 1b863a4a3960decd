"""HTML rendering for business and category pages.

Templates carry ``{{NAME}}`` placeholders. :func:`render` fills all of them
in one regex pass, so text produced for one slot is never re-scanned for
another slot's token. Every value that comes from the data store goes
through :func:`escape` before it lands in markup.
"""
from __future__ import annotations

import json
import re
from html import escape as html_escape
from typing import Iterable, List, Mapping, Sequence
from urllib.parse import quote

from .config import SiteSettings
from .models import Business, BusinessCard, BusinessDetail, Category, FormattedHoursRow
from .viewmodels import (
    FALLBACK_CATEGORY,
    business_description,
    categorize_tags_by_type,
    format_business_hours,
    location_tag,
    location_tags,
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z][A-Z0-9_]*)\}\}")

FEATURE_BUCKETS: tuple[tuple[str, str], ...] = (
    ("specialization", "Specializations"),
    ("amenity", "Amenities"),
    ("payment", "Payment Methods"),
    ("service", "Services"),
)

RESTAURANT_CATEGORY = "Restaurants"

_ICON_PHONE = (
    '<svg width="16" height="16" fill="none" viewBox="0 0 24 24" stroke="currentColor" aria-hidden="true">'
    '<path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" d="M3 5a2 2 0 012-2h3.28a1 1 0 01.948.684l1.498 4.493a1 1 0 01-.502 1.21l-2.257 1.13a11.042 11.042 0 005.516 5.516l1.13-2.257a1 1 0 011.21-.502l4.493 1.498a1 1 0 01.684.949V19a2 2 0 01-2 2h-1C9.716 21 3 14.284 3 6V5z" />'
    "</svg>"
)
_ICON_PIN = (
    '<svg width="16" height="16" fill="none" viewBox="0 0 24 24" stroke="currentColor" aria-hidden="true">'
    '<path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" d="M17.657 16.657L13.414 20.9a1.998 1.998 0 01-2.827 0l-4.244-4.243a8 8 0 1111.314 0z" />'
    '<path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" d="M15 11a3 3 0 11-6 0 3 3 0 016 0z" />'
    "</svg>"
)
_ICON_GLOBE = (
    '<svg width="16" height="16" fill="none" viewBox="0 0 24 24" stroke="currentColor" aria-hidden="true">'
    '<path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" d="M21 12a9 9 0 01-9 9m9-9a9 9 0 00-9-9m9 9H3m9 9a9 9 0 01-9-9m9 9c1.657 0 3-4.03 3-9s-1.343-9-3-9m0 18c-1.657 0-3-4.03-3-9s1.343-9 3-9m-9 9a9 9 0 019-9" />'
    "</svg>"
)


def render(template: str, slots: Mapping[str, str], *, strict: bool = True) -> str:
    """Replace each ``{{NAME}}`` in ``template`` with ``slots[NAME]``.

    A placeholder with no slot raises ``KeyError`` unless ``strict`` is off,
    in which case the token is left untouched.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in slots:
            return str(slots[name])
        if strict:
            raise KeyError(f"No value supplied for template placeholder {name}")
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def escape(value: object) -> str:
    """Escape text for HTML element content and quoted attributes."""

    if value is None:
        return ""
    return html_escape(str(value), quote=True)


def json_for_script(payload: object) -> str:
    """Compact JSON that is safe to embed inside a ``<script>`` element."""

    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def google_maps_url(address: str) -> str:
    return "https://www.google.com/maps/search/?api=1&query=" + quote(address or "", safe="-_.!~*'()")


def _indent(lines: Iterable[str], depth: int) -> str:
    prefix = " " * depth
    return "\n".join(f"{prefix}{line}" if line else "" for line in lines)


# ----------------------------------------------------------------------
# Structured data


def business_structured_data(business: Business, settings: SiteSettings) -> dict:
    category_name = business.category_name
    payload: dict = {
        "@context": "https://schema.org",
        "@type": "Restaurant" if category_name == RESTAURANT_CATEGORY else "LocalBusiness",
        "name": business.name,
        "description": business_description(business, settings.region),
        "url": settings.abs_url(f"/business/{business.slug}"),
        "address": {
            "@type": "PostalAddress",
            "streetAddress": business.address,
        },
    }
    if business.phone:
        payload["telephone"] = business.phone
    if business.website:
        payload["sameAs"] = business.website
    if business.hero_image_url:
        payload["image"] = business.hero_image_url
    return payload


def category_structured_data(
    category: Category, cards: Sequence[BusinessCard], settings: SiteSettings
) -> dict:
    return {
        "@context": "https://schema.org",
        "@type": "CollectionPage",
        "name": category_page_title(category, settings),
        "description": category_page_description(category, settings),
        "url": settings.abs_url(f"/{category.slug}"),
        "mainEntity": {
            "@type": "ItemList",
            "name": f"{category.name} in {settings.region}",
            "numberOfItems": len(cards),
            "itemListElement": [
                {
                    "@type": "ListItem",
                    "position": index + 1,
                    "name": card.name,
                    "url": settings.abs_url(f"/business/{card.slug}"),
                }
                for index, card in enumerate(cards)
            ],
        },
    }


# ----------------------------------------------------------------------
# Business page fragments


def _tag_chips(category_label: str, locations: Sequence[str]) -> str:
    chips = [f'<span class="business-tag">{escape(category_label)}</span>']
    chips.extend(f'<span class="business-tag">{escape(name)}</span>' for name in locations)
    return _indent(chips, 20)


def _action_buttons(business: Business) -> str:
    buttons: List[str] = []
    if business.phone:
        buttons.append(
            f'<a href="tel:{escape(business.phone)}" class="action-btn action-btn-primary">'
            f"{_ICON_PHONE} Call Now</a>"
        )
    buttons.append(
        f'<a href="{escape(google_maps_url(business.address))}" target="_blank" rel="noopener noreferrer" '
        f'class="action-btn action-btn-secondary">{_ICON_PIN} Get Directions</a>'
    )
    if business.website:
        buttons.append(
            f'<a href="{escape(business.website)}" target="_blank" rel="noopener noreferrer" '
            f'class="action-btn action-btn-secondary">{_ICON_GLOBE} Visit Website</a>'
        )
    return _indent(buttons, 20)


def _about_section(business: Business) -> str:
    if not business.description:
        return ""
    return _indent(
        [
            '<div class="content-card" id="about">',
            "    <h2>About</h2>",
            f"    <p>{escape(business.description)}</p>",
            "</div>",
        ],
        20,
    )


def _contact_info(business: Business) -> str:
    lines = [
        '<div class="contact-item contact-address">',
        '    <div class="contact-details">',
        "        <h3>Address</h3>",
        f"        <p>{escape(business.address)}</p>",
        f'        <a href="{escape(google_maps_url(business.address))}" target="_blank" rel="noopener noreferrer">View on Google Maps</a>',
        "    </div>",
        "</div>",
    ]
    if business.phone:
        lines.extend(
            [
                '<div class="contact-item contact-phone">',
                '    <div class="contact-details">',
                "        <h3>Phone</h3>",
                f'        <p><a href="tel:{escape(business.phone)}">{escape(business.phone)}</a></p>',
                "    </div>",
                "</div>",
            ]
        )
    if business.website:
        lines.extend(
            [
                '<div class="contact-item contact-website">',
                '    <div class="contact-details">',
                "        <h3>Website</h3>",
                f'        <p><a href="{escape(business.website)}" target="_blank" rel="noopener noreferrer">Visit Website</a></p>',
                "    </div>",
                "</div>",
            ]
        )
    return _indent(lines, 24)


def _features_section(categorized: Mapping[str, Sequence[str]]) -> str:
    groups: List[str] = []
    for key, label in FEATURE_BUCKETS:
        names = categorized.get(key) or []
        if not names:
            continue
        chips = "".join(
            f'<span class="feature-tag feature-tag-{key}">{escape(name)}</span>' for name in names
        )
        groups.extend(
            [
                '        <div class="feature-category">',
                f"            <h3>{label}</h3>",
                f'            <div class="feature-tags">{chips}</div>',
                "        </div>",
            ]
        )
    if not groups:
        return ""
    return _indent(
        [
            '<div class="content-card" id="features">',
            "    <h2>Features &amp; Amenities</h2>",
            '    <div class="features-grid">',
            *groups,
            "    </div>",
            "</div>",
        ],
        20,
    )


def _hours_section(rows: Sequence[FormattedHoursRow]) -> str:
    if not rows:
        return ""
    lines = [
        '<div class="content-card" id="hours">',
        "    <h2>Hours</h2>",
        '    <div class="hours-grid">',
    ]
    for row in rows:
        row_class = "hours-row hours-today" if row.is_today else "hours-row"
        lines.append(
            f'        <div class="{row_class}">'
            f'<span class="hours-day">{row.day}</span>'
            f'<span class="hours-time">{escape(row.display)}</span>'
            "</div>"
        )
    lines.extend(["    </div>", "</div>"])
    return _indent(lines, 20)


def _related_section(business: Business, related: Sequence[Business], limit: int) -> str:
    if not related:
        return ""
    items: List[str] = []
    for item in related[:limit]:
        neighborhood = location_tag(item.tags, fallback=None)
        location_markup = f"<p>{escape(neighborhood)}</p>" if neighborhood else ""
        items.append(
            f'        <a href="/business/{escape(item.slug)}" class="related-business">'
            f"<h3>{escape(item.name)}</h3>{location_markup}</a>"
        )
    heading = f"More {business.category_name}" if business.category_name else "More Nearby Businesses"
    return _indent(
        [
            '<div class="content-card" id="related">',
            f"    <h2>{escape(heading)}</h2>",
            "    <div>",
            *items,
            "    </div>",
            "</div>",
        ],
        20,
    )


def render_business_page(
    detail: BusinessDetail,
    settings: SiteSettings,
    *,
    today: int,
    year: int,
    related_limit: int = 5,
) -> str:
    """Render the complete HTML document for one business."""

    business = detail.business
    categorized = categorize_tags_by_type(detail.tags)
    hours = format_business_hours(detail.hours, today)
    locations = location_tags(detail.tags)
    category_label = business.category_name or FALLBACK_CATEGORY
    category_url = (
        f"/{business.category.slug}"
        if business.category is not None and business.category.slug
        else "/#categories"
    )
    slots = {
        "SITE_NAME": escape(settings.site_name),
        "REGION": escape(settings.region),
        "COPYRIGHT_YEAR": str(year),
        "BUSINESS_NAME": escape(business.name),
        "BUSINESS_DESCRIPTION": escape(business_description(business, settings.region)),
        "CANONICAL_URL": escape(settings.abs_url(f"/business/{business.slug}")),
        "BUSINESS_IMAGE": escape(business.hero_image_url or ""),
        "STRUCTURED_DATA": json_for_script(business_structured_data(business, settings)),
        "CATEGORY_NAME": escape(category_label),
        "CATEGORY_URL": escape(category_url),
        "LOCATION_TAG": f" • {escape(locations[0])}" if locations else "",
        "BUSINESS_TAGS": _tag_chips(category_label, locations),
        "ACTION_BUTTONS": _action_buttons(business),
        "ABOUT_SECTION": _about_section(business),
        "CONTACT_INFO": _contact_info(business),
        "FEATURES_SECTION": _features_section(categorized),
        "HOURS_SECTION": _hours_section(hours),
        "RELATED_SECTION": _related_section(business, detail.related, related_limit),
    }
    return render(settings.business_template, slots)


# ----------------------------------------------------------------------
# Category page fragments


def category_page_title(category: Category, settings: SiteSettings) -> str:
    return f"{category.name} in the {settings.region}"


def category_page_description(category: Category, settings: SiteSettings) -> str:
    return category.description or f"Browse {category.name} in the {settings.region}."


def _filter_options(names: Sequence[str], empty_label: str) -> str:
    if not names:
        return _indent([f'<option value="">{escape(empty_label)}</option>'], 24)
    return _indent(
        [f'<option value="{escape(name.lower())}">{escape(name)}</option>' for name in names],
        24,
    )


def business_card_markup(card: BusinessCard) -> str:
    tags = "".join(f'<span class="business-card-tag">{escape(tag)}</span>' for tag in card.tags)
    return (
        f'<a href="/business/{escape(card.slug)}" class="business-card">'
        '<div class="business-card-header">'
        f'<div class="business-card-category">{escape(card.category)}</div>'
        f'<h3 class="business-card-title">{escape(card.name)}</h3>'
        f'<p class="business-card-description">{escape(card.description)}</p>'
        f'<div class="business-card-tags">{tags}</div>'
        "</div>"
        '<div class="business-card-footer">'
        f'<div class="business-card-location">{_ICON_PIN} {escape(card.location)}</div>'
        '<div class="business-card-actions"><span class="action-btn action-btn-primary">View Details</span></div>'
        "</div>"
        "</a>"
    )


def render_category_page(
    category: Category,
    cards: Sequence[BusinessCard],
    settings: SiteSettings,
    *,
    filter_tags: Sequence[str],
    neighborhoods: Sequence[str],
    year: int,
) -> str:
    """Render the complete HTML document for one category."""

    slots = {
        "SITE_NAME": escape(settings.site_name),
        "REGION": escape(settings.region),
        "COPYRIGHT_YEAR": str(year),
        "PAGE_TITLE": escape(category_page_title(category, settings)),
        "PAGE_DESCRIPTION": escape(category_page_description(category, settings)),
        "CANONICAL_URL": escape(settings.abs_url(f"/{category.slug}")),
        "STRUCTURED_DATA": json_for_script(category_structured_data(category, cards, settings)),
        "CATEGORY_NAME": escape(category.name),
        "TAG_OPTIONS": _filter_options(filter_tags, "No filters available yet"),
        "NEIGHBORHOOD_OPTIONS": _filter_options(neighborhoods, "No neighborhoods available yet"),
        "BUSINESS_COUNT": str(len(cards)),
        "BUSINESS_CARDS": _indent([business_card_markup(card) for card in cards], 16),
        "BUSINESSES_JSON": json_for_script([card.to_dict() for card in cards]),
    }
    return render(settings.category_template, slots)
