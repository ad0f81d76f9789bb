from __future__ import annotations

import unittest
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from zoneinfo import ZoneInfo

from misc.discord_timestamps import DISCORD_TIMESTAMP_STYLES
from misc.discord_timestamps import format_discord_timestamp
from misc.discord_timestamps import require_timezone


class DiscordTimestampHelperTests(unittest.TestCase):
    def test_format_discord_timestamp_aware_datetime(self):
        dt = datetime(2026, 2, 2, 13, 30, tzinfo=timezone.utc)
        self.assertEqual(format_discord_timestamp(dt, style="f"), f"<t:{int(dt.timestamp())}:f>")

    def test_relative_style_for_deadlines(self):
        dt = datetime(2026, 2, 4, 13, 30, tzinfo=timezone.utc)
        self.assertEqual(format_discord_timestamp(dt, "R"), "<t:1770211800:R>")

    def test_same_instant_in_other_zone_gives_same_tag(self):
        utc = datetime(2026, 7, 4, 13, 15, tzinfo=timezone.utc)
        paris = utc.astimezone(ZoneInfo("Europe/Paris"))
        self.assertEqual(format_discord_timestamp(utc, "F"), format_discord_timestamp(paris, "F"))

    def test_blank_style_defaults_to_f(self):
        dt = datetime(2026, 2, 2, 13, 30, tzinfo=timezone(timedelta(hours=2)))
        self.assertTrue(format_discord_timestamp(dt, style="").endswith(":f>"))

    def test_format_discord_timestamp_rejects_naive_datetime(self):
        with self.assertRaises(ValueError):
            format_discord_timestamp(datetime(2026, 1, 1, 0, 0), style="f")

    def test_rejects_unknown_style(self):
        self.assertNotIn("x", DISCORD_TIMESTAMP_STYLES)
        with self.assertRaises(ValueError):
            format_discord_timestamp(datetime(2026, 1, 1, tzinfo=timezone.utc), style="x")

    def test_require_timezone(self):
        self.assertEqual(require_timezone(" Europe/Paris ").key, "Europe/Paris")
        with self.assertRaises(ValueError):
            require_timezone("Mars/Olympus")
        with self.assertRaises(ValueError):
            require_timezone("")


if __name__ == "__main__":
    unittest.main()
