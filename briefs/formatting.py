from __future__ import annotations

import discord

from briefs.models import Brief
from misc.discord_timestamps import format_discord_timestamp


BRIEF_EMBED_COLOR = 0x5865F2

EMBED_LABELS = {
    "fr": {
        "title": "📋 NOUVEAU BRIEF CRÉATIF",
        "company": "Nom de l'entreprise",
        "company_description": "Description de l'entreprise",
        "job_description": "Description du travail",
        "deadline": "Deadline",
    },
    "en": {
        "title": "📋 NEW CREATIVE BRIEF",
        "company": "Company name",
        "company_description": "Company description",
        "job_description": "Job description",
        "deadline": "Deadline",
    },
}

# Discord rejects embed field values above 1024 chars.
_FIELD_LIMIT = 1024


def _clip(text: str) -> str:
    clean = (text or "").strip() or "-"
    if len(clean) > _FIELD_LIMIT:
        return clean[: _FIELD_LIMIT - 3] + "..."
    return clean


def build_brief_embed(brief: Brief, language: str = "fr") -> discord.Embed:
    labels = EMBED_LABELS.get(language) or EMBED_LABELS["fr"]
    embed = discord.Embed(title=labels["title"], color=BRIEF_EMBED_COLOR, timestamp=brief.created_at)
    embed.add_field(name=labels["company"], value=_clip(f"**{brief.company_name}**"), inline=False)
    embed.add_field(name=labels["company_description"], value=_clip(brief.company_description), inline=False)
    embed.add_field(name=labels["job_description"], value=_clip(brief.job_description), inline=False)
    embed.add_field(name=labels["deadline"], value=format_discord_timestamp(brief.deadline, style="R"), inline=True)
    embed.set_footer(text=f"Brief ID: {brief.id}")
    return embed


def format_brief_line(brief: Brief) -> str:
    return (
        f"**{brief.company_name}**\n"
        f"├ ID: `{brief.id}`\n"
        f"├ Channel: <#{brief.channel_id}>\n"
        f"└ Deadline: {format_discord_timestamp(brief.deadline, style='R')}"
    )
