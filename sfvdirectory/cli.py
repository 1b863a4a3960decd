"""Command line entrypoints for the directory site generator."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import OUTPUT_DIR, load_datastore_settings, load_settings
from .datastore import SupabaseClient
from .errors import DataAccessError
from .generator import DirectoryGenerator
from .images import KeywordImageLookup, backfill_hero_images
from .repository import DirectoryRepository

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="San Fernando Valley directory site generator")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text, handler in (
        ("businesses", "Generate one page per active business", handle_businesses),
        ("categories", "Generate one page per category", handle_categories),
        ("sitemap", "Generate sitemap.xml", handle_sitemap),
        ("all", "Generate business pages, category pages and the sitemap", handle_all),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument(
            "--output",
            type=Path,
            default=OUTPUT_DIR,
            help="Output directory for the static site",
        )
        command.add_argument(
            "--workers",
            type=int,
            default=1,
            help="Number of pages to generate concurrently",
        )
        command.set_defaults(func=handler)

    images_parser = subparsers.add_parser(
        "hero-images", help="Backfill hero images for businesses that have none"
    )
    images_parser.add_argument(
        "--delay",
        type=float,
        default=1.0,
        help="Seconds to wait between updates",
    )
    images_parser.set_defaults(func=handle_hero_images)

    return parser


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def build_repository() -> DirectoryRepository:
    return DirectoryRepository(SupabaseClient(load_datastore_settings()))


def build_generator(args: argparse.Namespace) -> DirectoryGenerator:
    if args.workers < 1:
        raise SystemExit("--workers must be at least 1")
    return DirectoryGenerator(
        build_repository(),
        load_settings(),
        output_dir=args.output,
        max_workers=args.workers,
    )


def _run(args: argparse.Namespace, method: str) -> None:
    generator = build_generator(args)
    try:
        getattr(generator, method)()
    except DataAccessError as error:
        LOGGER.error("Could not load data from the data store: %s", error)
        raise SystemExit(1) from error


def handle_businesses(args: argparse.Namespace) -> None:
    _run(args, "generate_business_pages")


def handle_categories(args: argparse.Namespace) -> None:
    _run(args, "generate_category_pages")


def handle_sitemap(args: argparse.Namespace) -> None:
    _run(args, "generate_sitemap")


def handle_all(args: argparse.Namespace) -> None:
    _run(args, "generate_all")


def handle_hero_images(args: argparse.Namespace) -> None:
    if args.delay < 0:
        raise SystemExit("--delay cannot be negative")
    settings = load_settings()
    try:
        result = backfill_hero_images(
            build_repository(),
            KeywordImageLookup(),
            region=settings.region,
            delay=args.delay,
        )
    except DataAccessError as error:
        LOGGER.error("Could not load businesses: %s", error)
        raise SystemExit(1) from error
    LOGGER.info(
        "Hero images: %s updated, %s skipped, %s failed",
        result.updated,
        result.skipped,
        result.failed,
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        args.func(args)
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted; pages already written are kept")
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
