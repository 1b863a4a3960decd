from __future__ import annotations

import pytest

from sfvdirectory.config import DEFAULT_HERO_IMAGE
from sfvdirectory.errors import DataAccessError
from sfvdirectory.images import KeywordImageLookup, backfill_hero_images, image_query
from sfvdirectory.models import Business, CategoryRef


class FakeRepository:
    def __init__(self, businesses, *, failing_updates=(), fail_bulk=False):
        self.businesses = businesses
        self.failing_updates = set(failing_updates)
        self.fail_bulk = fail_bulk
        self.updates = []

    def list_active_businesses(self):
        if self.fail_bulk:
            raise DataAccessError("businesses unavailable")
        return list(self.businesses)

    def set_hero_image(self, business_id, url):
        if business_id in self.failing_updates:
            raise DataAccessError("update rejected")
        self.updates.append((business_id, url))


class NoImages:
    def lookup(self, query):
        return None


def test_keyword_lookup_matches_first_keyword_case_insensitively():
    lookup = KeywordImageLookup(
        table=(("gym", "https://img/gym.jpg"), ("pizza", "https://img/pizza.jpg")),
        default="https://img/default.jpg",
    )

    assert lookup.lookup("Tony's PIZZA and Gym") == "https://img/gym.jpg"
    assert lookup.lookup("Pizza Palace") == "https://img/pizza.jpg"
    assert lookup.lookup("Bookstore") == "https://img/default.jpg"
    assert KeywordImageLookup(table=(), default=None).lookup("anything") is None


def test_image_query_skips_missing_parts():
    assert image_query("Bagel Barn", "Restaurants", "San Fernando Valley") == (
        "Bagel Barn Restaurants San Fernando Valley"
    )
    assert image_query("Bagel Barn", None, "Encino") == "Bagel Barn Encino"


def test_backfill_updates_only_businesses_without_images():
    businesses = [
        Business(id=1, name="Iron Gym", slug="iron-gym", category=CategoryRef(name="Fitness")),
        Business(id=2, name="Has Image", slug="has-image", hero_image_url="https://img/existing.jpg"),
        Business(id=3, name="Corner Shop", slug="corner-shop"),
    ]
    repository = FakeRepository(businesses)
    pauses = []

    result = backfill_hero_images(
        repository, KeywordImageLookup(), region="San Fernando Valley", delay=0.5, sleep=pauses.append
    )

    assert (result.updated, result.skipped, result.failed) == (2, 1, 0)
    assert repository.updates[0][0] == 1
    assert "1571019613454" in repository.updates[0][1]
    assert repository.updates[1] == (3, DEFAULT_HERO_IMAGE)
    assert pauses == [0.5, 0.5]


def test_backfill_counts_failed_updates_and_missing_images():
    businesses = [Business(id=1, name="A", slug="a"), Business(id=2, name="B", slug="b")]
    repository = FakeRepository(businesses, failing_updates={1})

    result = backfill_hero_images(repository, KeywordImageLookup(), region="Valley")

    assert (result.updated, result.skipped, result.failed) == (1, 0, 1)

    skipped = backfill_hero_images(FakeRepository(businesses), NoImages(), region="Valley")
    assert (skipped.updated, skipped.skipped, skipped.failed) == (0, 2, 0)


def test_backfill_propagates_bulk_fetch_failure():
    with pytest.raises(DataAccessError):
        backfill_hero_images(FakeRepository([], fail_bulk=True), NoImages(), region="Valley")
