from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

try:
    from discord.ext import commands
except ModuleNotFoundError:
    commands = None

if commands is not None:
    from misc.events_runtime import boot_brief_runtime
    from misc.runtime_deps import RuntimeBootDeps
    from settings.store import SettingsStore


class _Store:
    def __init__(self):
        self.loads = 0

    async def load(self):
        self.loads += 1


class _Manager:
    def __init__(self, restored: int = 0, expired: int = 0):
        self.loads = 0
        self._restored = restored
        self._expired = expired

    async def load(self) -> int:
        self.loads += 1
        return self._restored

    def get_expired_briefs(self):
        return [object()] * self._expired


class _Scheduler:
    def __init__(self):
        self.starts = 0

    def start(self):
        self.starts += 1


@unittest.skipIf(commands is None, "discord.py not installed")
class BootBriefRuntimeTests(unittest.IsolatedAsyncioTestCase):
    async def test_boot_runs_once_across_reconnects(self):
        bot = SimpleNamespace()
        boot = RuntimeBootDeps(
            settings_store=_Store(),
            brief_manager=_Manager(restored=2, expired=1),
            brief_scheduler=_Scheduler(),
            scheduler_enabled=True,
        )

        await boot_brief_runtime(bot, boot)
        await boot_brief_runtime(bot, boot)

        self.assertEqual(boot.settings_store.loads, 1)
        self.assertEqual(boot.brief_manager.loads, 1)
        self.assertEqual(boot.brief_scheduler.starts, 1)

    async def test_disabled_scheduler_is_not_started(self):
        boot = RuntimeBootDeps(
            settings_store=_Store(),
            brief_manager=_Manager(),
            brief_scheduler=_Scheduler(),
            scheduler_enabled=False,
        )
        await boot_brief_runtime(SimpleNamespace(), boot)
        self.assertEqual(boot.brief_scheduler.starts, 0)
        self.assertEqual(boot.brief_manager.loads, 1)


    async def test_settings_write_failure_does_not_block_boot(self):
        with tempfile.TemporaryDirectory() as tmp:
            boot = RuntimeBootDeps(
                settings_store=SettingsStore(path=Path(tmp) / "servers.json"),
                brief_manager=_Manager(restored=1),
                brief_scheduler=_Scheduler(),
                scheduler_enabled=True,
            )
            with mock.patch("settings.store.write_settings_sync", side_effect=PermissionError("read-only")):
                await boot_brief_runtime(SimpleNamespace(), boot)

        self.assertEqual(boot.brief_manager.loads, 1)
        self.assertEqual(boot.brief_scheduler.starts, 1)

    async def test_failing_loader_does_not_block_the_scheduler(self):
        class _BrokenStore:
            async def load(self):
                raise RuntimeError("disk on fire")

        boot = RuntimeBootDeps(
            settings_store=_BrokenStore(),
            brief_manager=_Manager(),
            brief_scheduler=_Scheduler(),
            scheduler_enabled=True,
        )
        await boot_brief_runtime(SimpleNamespace(), boot)
        self.assertEqual(boot.brief_manager.loads, 1)
        self.assertEqual(boot.brief_scheduler.starts, 1)


if __name__ == "__main__":
    unittest.main()
