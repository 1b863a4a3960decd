"""Static page generation for the business directory."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Sequence, Tuple, TypeVar

from .config import OUTPUT_DIR, RELATED_BUSINESS_LIMIT, SiteSettings
from .errors import DataAccessError, DirectoryError
from .models import Business, Category
from .renderer import render_business_page, render_category_page
from .repository import DirectoryRepository
from .sitemap import build_sitemap
from .utils import write_text
from .viewmodels import category_filter_tags, derive_business_card, today_index

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
Writer = Callable[[Path, str], None]


class _Cancelled(Exception):
    pass


@dataclass
class RunSummary:
    """Outcome of one generation run."""

    kind: str
    total: int = 0
    generated: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)
    cancelled: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled

    def log(self) -> None:
        LOGGER.info(
            "Generated %s of %s %s pages, %s failed",
            len(self.generated),
            self.total,
            self.kind,
            len(self.failures),
        )
        for name, reason in self.failures:
            LOGGER.error("  failed: %s (%s)", name, reason)
        if self.cancelled:
            LOGGER.warning("  cancelled before start: %s", ", ".join(self.cancelled))


class DirectoryGenerator:
    """Drive fetch, build, render and write for every page of the directory.

    One entity failing (fetch, build or write) is logged and recorded in the
    returned :class:`RunSummary`; only the initial bulk fetch can abort a run.
    """

    def __init__(
        self,
        repository: DirectoryRepository,
        settings: SiteSettings,
        output_dir: Path | str = OUTPUT_DIR,
        *,
        writer: Writer = write_text,
        clock: Callable[[], datetime] | None = None,
        max_workers: int = 1,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.repository = repository
        self.settings = settings
        self.output_dir = Path(output_dir)
        self.writer = writer
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()

    # ------------------------------------------------------------------
    # Paths

    def business_page_path(self, slug: str) -> Path:
        return self.output_dir / "business" / f"{slug}.html"

    def category_page_path(self, slug: str) -> Path:
        return self.output_dir / f"{slug}.html"

    def sitemap_path(self) -> Path:
        return self.output_dir / "sitemap.xml"

    # ------------------------------------------------------------------
    # Public API

    def generate_business_pages(self) -> RunSummary:
        LOGGER.info("Fetching active businesses")
        rejected: List[Tuple[str, str]] = []
        businesses = self.repository.list_active_businesses(rejects=rejected)
        LOGGER.info("Found %s businesses to generate", len(businesses))
        now = self.clock()
        today = today_index(now)

        def _build(business: Business) -> None:
            detail = self.repository.load_business_detail(business)
            html = render_business_page(
                detail,
                self.settings,
                today=today,
                year=now.year,
                related_limit=RELATED_BUSINESS_LIMIT,
            )
            self.writer(self.business_page_path(business.slug), html)

        return self._run_batch(
            "business", businesses, lambda item: item.slug, _build, rejected=rejected
        )

    def generate_category_pages(self) -> RunSummary:
        LOGGER.info("Fetching categories")
        categories = self.repository.list_categories()
        LOGGER.info("Found %s categories to generate", len(categories))
        try:
            tags = self.repository.list_tags()
        except DataAccessError as error:
            LOGGER.warning("Could not fetch tags, neighborhood filters disabled: %s", error)
            tags = []
        neighborhoods = [tag.name for tag in tags if tag.tag_type == "location" and tag.name]
        now = self.clock()

        def _build(category: Category) -> None:
            businesses = self.repository.businesses_in_category(category.id)
            cards = [derive_business_card(business, self.settings.region) for business in businesses]
            html = render_category_page(
                category,
                cards,
                self.settings,
                filter_tags=category_filter_tags(businesses),
                neighborhoods=neighborhoods,
                year=now.year,
            )
            self.writer(self.category_page_path(category.slug), html)
            LOGGER.debug("%s: %s businesses", category.slug, len(cards))

        return self._run_batch("category", categories, lambda item: item.slug, _build)

    def generate_sitemap(self) -> RunSummary:
        LOGGER.info("Fetching sitemap entries")
        entries = self.repository.sitemap_entries()
        summary = RunSummary(kind="sitemap", total=1)
        xml = build_sitemap(entries, self.settings, self.clock().date())
        try:
            self.writer(self.sitemap_path(), xml)
        except DirectoryError as error:
            LOGGER.error("Failed to write sitemap: %s", error)
            summary.failures.append(("sitemap.xml", str(error)))
            return summary
        LOGGER.info("Wrote sitemap with %s URLs", len(entries) + 1)
        summary.generated.append("sitemap.xml")
        return summary

    def generate_all(self) -> List[RunSummary]:
        return [
            self.generate_business_pages(),
            self.generate_category_pages(),
            self.generate_sitemap(),
        ]

    # ------------------------------------------------------------------
    # Batch helpers

    def _run_batch(
        self,
        kind: str,
        items: Sequence[T],
        label: Callable[[T], str],
        build: Callable[[T], None],
        *,
        rejected: Sequence[Tuple[str, str]] = (),
    ) -> RunSummary:
        total = len(items)
        summary = RunSummary(kind=kind, total=total + len(rejected))
        for name, reason in rejected:
            LOGGER.error("Error generating %s page for %s: %s", kind, name, reason)
            summary.failures.append((name, reason))

        def _guarded(index: int, item: T) -> None:
            if self.cancel_event.is_set():
                raise _Cancelled()
            LOGGER.info("[%s/%s] Generating %s page %s", index, total, kind, label(item))
            build(item)

        def _record(item: T, outcome: BaseException | None) -> None:
            name = label(item)
            if outcome is None:
                summary.generated.append(name)
            elif isinstance(outcome, _Cancelled):
                summary.cancelled.append(name)
            else:
                LOGGER.error("Error generating %s page for %s: %s", kind, name, outcome)
                summary.failures.append((name, str(outcome)))

        if self.max_workers == 1 or total <= 1:
            for index, item in enumerate(items, start=1):
                try:
                    _guarded(index, item)
                except (DirectoryError, _Cancelled) as error:
                    _record(item, error)
                except KeyboardInterrupt:
                    self.cancel_event.set()
                    raise
                else:
                    _record(item, None)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(_guarded, index, item)
                    for index, item in enumerate(items, start=1)
                ]
                try:
                    for item, future in zip(items, futures):
                        try:
                            future.result()
                        except (DirectoryError, _Cancelled) as error:
                            _record(item, error)
                        else:
                            _record(item, None)
                except KeyboardInterrupt:
                    # Queued entities see the flag and bail; running ones finish.
                    self.cancel_event.set()
                    raise
        summary.log()
        return summary
