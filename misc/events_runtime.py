from __future__ import annotations

from discord.ext import commands
from misc.runtime_deps import RuntimeBootDeps


async def boot_brief_runtime(bot: commands.Bot, boot: RuntimeBootDeps) -> None:
    if getattr(bot, "_brief_runtime_booted", False):
        return
    bot._brief_runtime_booted = True

    try:
        restored = await boot.brief_manager.load()
    except Exception as e:
        print(f"[Briefs] WARNING brief load failed: {e}; starting empty")
        restored = 0
    try:
        await boot.settings_store.load()
    except Exception as e:
        print(f"[Settings] WARNING settings load failed: {e}; using defaults")
    if restored:
        print(f"[Briefs] restored {restored} active briefs from previous session")
        expired = boot.brief_manager.get_expired_briefs()
        if expired:
            print(f"[Briefs] found {len(expired)} briefs that expired during downtime")

    if boot.scheduler_enabled and boot.brief_scheduler is not None:
        boot.brief_scheduler.start()
    else:
        print("[Scheduler] disabled; briefs will only be created by command")


def register_runtime_events(
    bot: commands.Bot,
    *,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"Brief bot is online as {bot.user}")
        await boot_brief_runtime(bot, boot)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return
        original = getattr(error, "original", error)
        print(f"[Commands] error in {getattr(ctx.command, 'qualified_name', '?')}: {original}")
        try:
            await ctx.send("❌ An error occurred while executing this command.")
        except Exception as e:
            print(f"[Commands] could not report error: {e}")
