from __future__ import annotations

import asyncio
import importlib
import tempfile
from pathlib import Path


class _DummyGenerator:
    def generate(self, language: str = "fr"):
        raise RuntimeError("smoke check never generates")


async def _no_channel(channel_id: int):
    return None


async def _noop_alert(message: str, error=None) -> None:
    return None


async def _noop_send(channel, text: str) -> None:
    return None


def _try_import_or_skip(module_name: str, pip_name: str | None = None) -> bool:
    try:
        importlib.import_module(module_name)
        return True
    except ModuleNotFoundError:
        install_name = pip_name or module_name
        print(
            f"Smoke wiring check skipped: missing dependency '{module_name}'. "
            f"Install requirements and retry (e.g. `pip install {install_name}` "
            f"or `pip install -e .`)."
        )
        return False


def _main() -> int:
    if not _try_import_or_skip("discord", "discord.py"):
        return 0
    if not _try_import_or_skip("apscheduler", "APScheduler"):
        return 0

    import discord
    from discord.ext import commands
    from briefs.service import BriefManager
    from jobs.scheduler import BriefScheduler
    from misc.runtime_wiring import wire_bot_runtime
    from settings.store import SettingsStore

    with tempfile.TemporaryDirectory() as tmp:
        settings_store = SettingsStore(path=Path(tmp) / "servers.json")
        brief_manager = BriefManager(
            generator=_DummyGenerator(),
            store_path=str(Path(tmp) / "briefs.json"),
            get_channel=_no_channel,
            alert_func=_noop_alert,
        )
        brief_scheduler = BriefScheduler(brief_manager=brief_manager, settings_store=settings_store)

        bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
        wire_bot_runtime(
            bot,
            user_is_owner=lambda user: False,
            send_chunked=_noop_send,
            settings_store=settings_store,
            brief_manager=brief_manager,
            brief_scheduler=brief_scheduler,
            scheduler_enabled=True,
            default_brief_days=2,
            max_brief_days=14,
        )

        expected_commands = {
            "brief.new",
            "brief.active",
            "brief.complete",
            "brief.cancel",
            "brief.stats",
            "brief.schedule",
            "brief.unschedule",
            "config.brief",
        }
        existing_commands = set(bot.all_commands.keys())
        missing = sorted(expected_commands - existing_commands)
        if missing:
            raise RuntimeError(f"Missing expected commands: {missing}")

        if getattr(bot, "on_ready", None) is None or getattr(bot, "on_command_error", None) is None:
            raise RuntimeError("Runtime events were not registered")

        async def _boot() -> None:
            await settings_store.load()
            await brief_manager.load()

        asyncio.run(_boot())

    print("Smoke wiring check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
