from __future__ import annotations

import unittest
from datetime import date, datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from sfvdirectory.errors import WriteError
from sfvdirectory.utils import env_float, env_str, iso_date, parse_iso_datetime, write_text


class UtilsTests(unittest.TestCase):
    def test_parse_iso_datetime_handles_zulu_and_offsets(self) -> None:
        self.assertEqual(
            parse_iso_datetime("2024-03-05T10:11:12Z"),
            datetime(2024, 3, 5, 10, 11, 12, tzinfo=timezone.utc),
        )
        self.assertEqual(
            parse_iso_datetime("2024-03-05T01:00:00-08:00"),
            datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc),
        )

    def test_parse_iso_datetime_truncates_long_fractions(self) -> None:
        parsed = parse_iso_datetime("2024-03-05T10:11:12.123456789+00:00")
        self.assertIsNotNone(parsed)
        self.assertEqual(parsed.microsecond, 123456)

    def test_parse_iso_datetime_rejects_blank_and_garbage(self) -> None:
        self.assertIsNone(parse_iso_datetime(None))
        self.assertIsNone(parse_iso_datetime("   "))
        self.assertIsNone(parse_iso_datetime("yesterday"))

    def test_iso_date_accepts_dates_and_datetimes(self) -> None:
        self.assertEqual(iso_date(date(2025, 1, 2)), "2025-01-02")
        self.assertEqual(iso_date(datetime(2025, 1, 2, 23, 59)), "2025-01-02")

    def test_env_helpers_treat_blank_as_unset(self) -> None:
        with mock.patch.dict("os.environ", {"SFV_BLANK": "  ", "SFV_TIMEOUT": "2.5", "SFV_BAD": "fast"}):
            self.assertEqual(env_str("SFV_BLANK", "fallback"), "fallback")
            self.assertEqual(env_float("SFV_TIMEOUT", 15.0), 2.5)
            self.assertEqual(env_float("SFV_BAD", 15.0), 15.0)
            self.assertEqual(env_float("SFV_MISSING", 15.0), 15.0)

    def test_write_text_creates_parents(self) -> None:
        with TemporaryDirectory() as tmp:
            target = Path(tmp) / "business" / "a.html"
            write_text(target, "<p>hi</p>")
            self.assertEqual(target.read_text(encoding="utf-8"), "<p>hi</p>")

    def test_write_text_wraps_os_errors(self) -> None:
        with TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "business"
            blocker.write_text("not a directory", encoding="utf-8")
            with self.assertRaises(WriteError):
                write_text(blocker / "a.html", "<p>hi</p>")

    def test_write_text_keeps_previous_page_when_interrupted(self) -> None:
        with TemporaryDirectory() as tmp:
            target = Path(tmp) / "a.html"
            target.write_text("<p>old</p>", encoding="utf-8")
            with mock.patch("sfvdirectory.utils.os.replace", side_effect=KeyboardInterrupt):
                with self.assertRaises(KeyboardInterrupt):
                    write_text(target, "<p>new</p>")
            self.assertEqual(target.read_text(encoding="utf-8"), "<p>old</p>")
            self.assertEqual([p.name for p in Path(tmp).iterdir()], ["a.html"])


if __name__ == "__main__":
    unittest.main()
