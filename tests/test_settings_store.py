from __future__ import annotations

import json
import tempfile
import unittest
from unittest import mock
from pathlib import Path

from settings.store import DEFAULT_BRIEF_DURATION_HOURS
from settings.store import ServerSettings
from settings.store import SettingsStore
from settings.store import read_settings_sync


class SettingsStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "config" / "servers.json"

    async def asyncTearDown(self):
        self.tmp.cleanup()

    async def test_missing_file_is_created_empty(self):
        store = SettingsStore(path=self.path)
        await store.load()
        self.assertTrue(self.path.exists())
        self.assertEqual(json.loads(self.path.read_text(encoding="utf-8")), {})
        self.assertEqual(store.all(), [])

    async def test_get_returns_defaults_for_unknown_guild(self):
        store = SettingsStore(path=self.path)
        s = store.get(42)
        self.assertEqual(
            s,
            ServerSettings(
                guild_id=42,
                brief_channel_id=None,
                brief_duration_hours=DEFAULT_BRIEF_DURATION_HOURS,
                auto_generate_briefs=False,
                language="fr",
            ),
        )

    async def test_get_returns_a_copy(self):
        store = SettingsStore(path=self.path)
        s = store.get(1)
        s.auto_generate_briefs = True
        self.assertFalse(store.get(1).auto_generate_briefs)

    async def test_update_merges_and_persists(self):
        store = SettingsStore(path=self.path)
        await store.update(1, brief_channel_id=100)
        updated = await store.update(1, auto_generate_briefs=True, language="EN")

        self.assertEqual(updated.brief_channel_id, 100)
        self.assertTrue(updated.auto_generate_briefs)
        self.assertEqual(updated.language, "en")
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(
            raw["1"],
            {
                "guildId": "1",
                "briefChannelId": "100",
                "briefDurationHours": 48,
                "autoGenerateBriefs": True,
                "language": "en",
            },
        )

    async def test_reload_restores_updates(self):
        first = SettingsStore(path=self.path)
        await first.update(123456789012345678, brief_channel_id=223456789012345678, brief_duration_hours=72)

        second = SettingsStore(path=self.path)
        await second.load()
        s = second.get(123456789012345678)
        self.assertEqual(s.brief_channel_id, 223456789012345678)
        self.assertEqual(s.brief_duration_hours, 72)

    async def test_update_can_clear_channel(self):
        store = SettingsStore(path=self.path)
        await store.update(1, brief_channel_id=100)
        cleared = await store.update(1, brief_channel_id=None)
        self.assertIsNone(cleared.brief_channel_id)

    async def test_invalid_values_are_rejected_and_nothing_changes(self):
        store = SettingsStore(path=self.path)
        await store.update(1, brief_duration_hours=24)
        for bad in (0, -5, 1.5, True, "soon"):
            with self.assertRaises(ValueError):
                await store.update(1, brief_duration_hours=bad)
        with self.assertRaises(ValueError):
            await store.update(1, language="de")
        with self.assertRaises(ValueError):
            await store.update(1, brief_channel="oops")
        self.assertEqual(store.get(1).brief_duration_hours, 24)
        self.assertEqual(read_settings_sync(self.path)[1].brief_duration_hours, 24)

    async def test_corrupt_file_falls_back_to_defaults(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("[1, 2", encoding="utf-8")
        store = SettingsStore(path=self.path)
        await store.load()
        self.assertEqual(store.all(), [])
        self.assertFalse(store.get(5).auto_generate_briefs)

    async def test_legacy_file_without_language(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            json.dumps(
                {
                    "99": {
                        "guildId": "99",
                        "briefChannelId": "500",
                        "briefDurationHours": 48,
                        "autoGenerateBriefs": True,
                    }
                }
            ),
            encoding="utf-8",
        )
        store = SettingsStore(path=self.path)
        await store.load()
        s = store.get(99)
        self.assertEqual(s.language, "fr")
        self.assertEqual(s.brief_channel_id, 500)
        self.assertTrue(s.auto_generate_briefs)


    async def test_first_run_write_failure_keeps_defaults(self):
        store = SettingsStore(path=self.path)
        with mock.patch("settings.store.write_settings_sync", side_effect=PermissionError("read-only")):
            await store.load()
        self.assertEqual(store.all(), [])
        self.assertEqual(store.get(3).brief_duration_hours, DEFAULT_BRIEF_DURATION_HOURS)

    async def test_update_write_failure_keeps_in_memory_settings(self):
        blocker = Path(self.tmp.name) / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = SettingsStore(path=blocker / "servers.json")

        updated = await store.update(1, auto_generate_briefs=True)

        self.assertTrue(updated.auto_generate_briefs)
        self.assertTrue(store.get(1).auto_generate_briefs)
        self.assertFalse((blocker / "servers.json").exists())

    async def test_string_flags_are_parsed(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            json.dumps(
                {
                    "1": {"guildId": "1", "autoGenerateBriefs": "false"},
                    "2": {"guildId": "2", "autoGenerateBriefs": "true"},
                }
            ),
            encoding="utf-8",
        )
        store = SettingsStore(path=self.path)
        await store.load()
        self.assertFalse(store.get(1).auto_generate_briefs)
        self.assertTrue(store.get(2).auto_generate_briefs)

    async def test_invalid_record_is_skipped_and_others_survive(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            json.dumps(
                {
                    "1": {"guildId": "1", "briefChannelId": "100", "briefDurationHours": -4},
                    "2": {"guildId": "2", "briefChannelId": "200", "autoGenerateBriefs": True},
                    "3": "garbage",
                }
            ),
            encoding="utf-8",
        )
        store = SettingsStore(path=self.path)
        await store.load()
        self.assertEqual([s.guild_id for s in store.all()], [2])

        await store.update(2, language="en")
        on_disk = read_settings_sync(self.path)
        self.assertEqual(on_disk[2].brief_channel_id, 200)
        self.assertEqual(on_disk[2].language, "en")


if __name__ == "__main__":
    unittest.main()
