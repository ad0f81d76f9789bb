from __future__ import annotations

import re

from briefs.errors import BriefNotFoundError
from briefs.formatting import format_brief_line
from discord.ext import commands
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.discord_text import parse_channel_id_token


def _parse_new_args(raw: str, *, min_days: int, max_days: int) -> tuple[int | None, int | None, str | None]:
    days: int | None = None
    channel_id: int | None = None
    for tok in [t for t in re.split(r"\s+", (raw or "").strip()) if t]:
        parsed_channel = parse_channel_id_token(tok)
        if parsed_channel is not None and tok.startswith("<#"):
            channel_id = parsed_channel
            continue
        if re.fullmatch(r"\d{1,3}", tok):
            days = int(tok)
            if days < min_days or days > max_days:
                return (None, None, f"Days must be between {min_days} and {max_days}.")
            continue
        if parsed_channel is not None:
            channel_id = parsed_channel
            continue
        return (None, None, f"Unrecognized argument `{tok}`.")
    return (days, channel_id, None)


def _parse_schedule_args(raw: str) -> tuple[int | None, int | None, str | None]:
    text = (raw or "").strip()
    if "|" not in text:
        return (None, None, None)
    left, cron_expression = [s.strip() for s in text.split("|", 1)]
    tokens = [t for t in re.split(r"\s+", left) if t]
    if len(tokens) != 2 or not cron_expression:
        return (None, None, None)
    channel_id = parse_channel_id_token(tokens[0])
    if channel_id is None or not re.fullmatch(r"\d{1,3}", tokens[1]):
        return (None, None, None)
    return (channel_id, int(tokens[1]), cron_expression)


def _briefs_for_guild(briefs, guild) -> list:
    gid = int(getattr(guild, "id", 0) or 0)
    out = []
    for b in briefs:
        if b.guild_id is not None:
            if b.guild_id == gid:
                out.append(b)
        elif guild.get_channel(b.channel_id) is not None:
            out.append(b)
    return out


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    async def require_guild(ctx: commands.Context) -> bool:
        if getattr(ctx, "guild", None) is None:
            await ctx.send("This command only works in a server.")
            return False
        return True

    async def require_admin(ctx: commands.Context) -> bool:
        if gates.user_is_admin(ctx.author):
            return True
        await ctx.send("This command is admin-only.")
        return False

    @bot.command(name="brief.new")
    async def brief_new(ctx: commands.Context, *, raw: str = ""):
        if not await require_guild(ctx):
            return
        days, channel_id, err = _parse_new_args(raw, min_days=deps.min_brief_days, max_days=deps.max_brief_days)
        if err:
            await ctx.send(f"Error: {err} Usage: `!brief.new [days] [#channel]`")
            return
        settings = deps.settings_store.get(int(ctx.guild.id))
        days = days or deps.default_brief_days
        target_channel_id = channel_id or settings.brief_channel_id or int(ctx.channel.id)

        brief = await deps.brief_manager.create_brief(
            target_channel_id,
            days * 24,
            language=settings.language,
            guild_id=int(ctx.guild.id),
        )
        if brief is None:
            await ctx.send("❌ Error creating the brief. An administrator has been notified.")
            return
        await ctx.send(f"✅ **New brief created!**\n\n**Company:** {brief.company_name}\n**ID:** `{brief.id}`")

    @bot.command(name="brief.active")
    async def brief_active(ctx: commands.Context):
        if not await require_guild(ctx):
            return
        briefs = _briefs_for_guild(deps.brief_manager.get_active_briefs(), ctx.guild)
        if not briefs:
            await ctx.send("📭 No active briefs at the moment.")
            return
        briefs.sort(key=lambda b: b.deadline)
        body = "\n\n".join(format_brief_line(b) for b in briefs)
        await deps.send_chunked(ctx.channel, f"## 📋 Active Briefs\n\n{body}")

    @bot.command(name="brief.complete")
    async def brief_complete(ctx: commands.Context, brief_id: str = ""):
        if not await require_guild(ctx):
            return
        brief_id = (brief_id or "").strip()
        if not brief_id:
            await ctx.send("❌ Please provide a brief ID to complete.")
            return
        try:
            await deps.brief_manager.complete_brief(brief_id)
        except BriefNotFoundError:
            await ctx.send(f"❌ Unable to complete brief `{brief_id}`. Please check the ID.")
            return
        await ctx.send(f"✅ **Brief completed!**\nID: `{brief_id}`")

    @bot.command(name="brief.cancel")
    async def brief_cancel(ctx: commands.Context, brief_id: str = ""):
        if not await require_guild(ctx):
            return
        if not await require_admin(ctx):
            return
        brief_id = (brief_id or "").strip()
        if not brief_id:
            await ctx.send("❌ Please provide a brief ID to cancel.")
            return
        try:
            await deps.brief_manager.cancel_brief(brief_id)
        except BriefNotFoundError:
            await ctx.send(f"❌ Unable to cancel brief `{brief_id}`. Please check the ID.")
            return
        await ctx.send(f"🛑 **Brief cancelled.**\nID: `{brief_id}`")

    @bot.command(name="brief.stats")
    async def brief_stats(ctx: commands.Context):
        if not await require_guild(ctx):
            return
        stats = deps.brief_manager.get_stats()
        lines = [
            "Brief stats (since last restart):",
            f"- active: {stats['active']}",
            f"- expired, awaiting sweep: {stats['expired_pending']}",
            f"- completed: {stats['completed']}",
            f"- cancelled: {stats['cancelled']}",
        ]
        if deps.brief_scheduler is not None:
            lines.append(f"- timers: {', '.join(deps.brief_scheduler.scheduled_keys()) or '(none)'}")
        await ctx.send("```\n" + "\n".join(lines) + "\n```")

    @bot.command(name="brief.schedule")
    async def brief_schedule(ctx: commands.Context, *, raw: str = ""):
        if not await require_guild(ctx):
            return
        if not await require_admin(ctx):
            return
        if deps.brief_scheduler is None:
            await ctx.send("Error: the scheduler is disabled.")
            return
        channel_id, days, cron_expression = _parse_schedule_args(raw)
        if channel_id is None or days is None or not cron_expression:
            await ctx.send("Usage: `!brief.schedule <#channel> <days> | <cron expression>`")
            return
        if days < deps.min_brief_days or days > deps.max_brief_days:
            await ctx.send(f"Error: Days must be between {deps.min_brief_days} and {deps.max_brief_days}.")
            return
        settings = deps.settings_store.get(int(ctx.guild.id))
        try:
            deps.brief_scheduler.schedule_custom_brief(
                channel_id,
                cron_expression,
                days * 24,
                language=settings.language,
                guild_id=int(ctx.guild.id),
            )
        except ValueError as e:
            await ctx.send(f"Error: {e}")
            return
        await ctx.send(f"⏰ Custom brief schedule set for <#{channel_id}>: `{cron_expression}` ({days} days).")

    @bot.command(name="brief.unschedule")
    async def brief_unschedule(ctx: commands.Context, channel_token: str = ""):
        if not await require_guild(ctx):
            return
        if not await require_admin(ctx):
            return
        if deps.brief_scheduler is None:
            await ctx.send("Error: the scheduler is disabled.")
            return
        channel_id = parse_channel_id_token(channel_token)
        if channel_id is None:
            await ctx.send("Usage: `!brief.unschedule <#channel>`")
            return
        if deps.brief_scheduler.unschedule_custom_brief(channel_id):
            await ctx.send(f"Custom brief schedule removed for <#{channel_id}>.")
        else:
            await ctx.send(f"No custom brief schedule for <#{channel_id}>.")
