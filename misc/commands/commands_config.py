from __future__ import annotations

import re

from discord.ext import commands
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.discord_text import parse_channel_id_token


_TRUE_TOKENS = {"on", "true", "yes", "1", "enable", "enabled"}
_FALSE_TOKENS = {"off", "false", "no", "0", "disable", "disabled"}


def _parse_config_args(raw: str, *, min_days: int, max_days: int) -> tuple[dict, str | None]:
    updates: dict = {}
    for tok in [t for t in re.split(r"\s+", (raw or "").strip()) if t]:
        if "=" not in tok:
            return ({}, f"Expected key=value, got `{tok}`.")
        key, value = [s.strip() for s in tok.split("=", 1)]
        key = key.lower()
        if key == "channel":
            if value.lower() in {"none", "unset"}:
                updates["brief_channel_id"] = None
                continue
            channel_id = parse_channel_id_token(value)
            if channel_id is None:
                return ({}, f"Invalid channel `{value}`.")
            updates["brief_channel_id"] = channel_id
        elif key == "days":
            if not re.fullmatch(r"\d{1,3}", value) or not (min_days <= int(value) <= max_days):
                return ({}, f"Days must be between {min_days} and {max_days}.")
            updates["brief_duration_hours"] = int(value) * 24
        elif key == "auto":
            if value.lower() in _TRUE_TOKENS:
                updates["auto_generate_briefs"] = True
            elif value.lower() in _FALSE_TOKENS:
                updates["auto_generate_briefs"] = False
            else:
                return ({}, f"Invalid auto value `{value}` (use on/off).")
        elif key in {"lang", "language"}:
            if value.lower() not in {"fr", "en"}:
                return ({}, f"Invalid language `{value}` (use fr/en).")
            updates["language"] = value.lower()
        else:
            return ({}, f"Unknown setting `{key}`.")
    return (updates, None)


def _describe_settings(settings) -> str:
    channel = f"<#{settings.brief_channel_id}>" if settings.brief_channel_id else "Not set"
    days = settings.brief_duration_hours / 24
    days_text = f"{int(days)}" if days.is_integer() else f"{days:.1f}"
    return (
        f"**Channel:** {channel}\n"
        f"**Default Duration:** {days_text} days\n"
        f"**Auto-generate:** {'Enabled ✅' if settings.auto_generate_briefs else 'Disabled ❌'}\n"
        f"**Language:** {settings.language}"
    )


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    @bot.command(name="config.brief")
    async def config_brief(ctx: commands.Context, *, raw: str = ""):
        if getattr(ctx, "guild", None) is None:
            await ctx.send("This command only works in a server.")
            return
        if not gates.user_is_admin(ctx.author):
            await ctx.send("This command is admin-only.")
            return

        guild_id = int(ctx.guild.id)
        updates, err = _parse_config_args(raw, min_days=deps.min_brief_days, max_days=deps.max_brief_days)
        if err:
            await ctx.send(
                f"Error: {err}\nUsage: `!config.brief [channel=<#channel>] [days=<n>] [auto=on|off] [lang=fr|en]`"
            )
            return

        if not updates:
            settings = deps.settings_store.get(guild_id)
            await ctx.send(f"## ⚙️ Current Brief Configuration\n\n{_describe_settings(settings)}")
            return

        try:
            settings = await deps.settings_store.update(guild_id, **updates)
        except ValueError as e:
            await ctx.send(f"Error: {e}")
            return
        await ctx.send(f"## ⚙️ Brief Configuration\n\n{_describe_settings(settings)}")
