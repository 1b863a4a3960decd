"""General utility helpers."""
from __future__ import annotations

import logging
import os
from contextlib import suppress
from datetime import date, datetime, timezone
from pathlib import Path

from .errors import WriteError

logger = logging.getLogger(__name__)


def env_str(name: str, default: str | None = None) -> str | None:
    """Return a stripped environment variable, treating blanks as unset."""

    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def env_float(name: str, default: float) -> float:
    value = env_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, value, default)
        return default


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as stored by the data store."""

    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        # PostgREST may emit microseconds with more than six digits.
        head, dot, tail = text.partition(".")
        if not dot:
            return None
        digits = "".join(ch for ch in tail if ch.isdigit())
        zone = tail[len(digits):]
        try:
            parsed = datetime.fromisoformat(f"{head}.{digits[:6]}{zone}".replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def iso_date(value: date | datetime) -> str:
    """Return ``YYYY-MM-DD`` for a date or datetime."""

    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def write_text(path: Path, content: str) -> None:
    """Write UTF-8 text, creating parent folders; failures raise ``WriteError``.

    The content goes to a sibling temp file that is then renamed over
    ``path``, so an interrupted write never leaves a truncated page behind.
    """

    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_text(content, encoding="utf-8")
        os.replace(temp_path, path)
    except OSError as exc:
        raise WriteError(f"Failed to write {path}: {exc}") from exc
    finally:
        with suppress(OSError):
            temp_path.unlink(missing_ok=True)
