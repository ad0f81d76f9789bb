from __future__ import annotations

import asyncio
import json
import os
import tempfile
from dataclasses import dataclass
from dataclasses import replace
from pathlib import Path
from typing import Any


DEFAULT_BRIEF_DURATION_HOURS = 48
SETTINGS_LANGUAGES = {"fr", "en"}
UPDATABLE_FIELDS = {"brief_channel_id", "brief_duration_hours", "auto_generate_briefs", "language"}


@dataclass(slots=True)
class ServerSettings:
    guild_id: int
    brief_channel_id: int | None = None
    brief_duration_hours: int = DEFAULT_BRIEF_DURATION_HOURS
    auto_generate_briefs: bool = False
    language: str = "fr"


def _settings_to_record(s: ServerSettings) -> dict[str, Any]:
    return {
        "guildId": str(s.guild_id),
        "briefChannelId": str(s.brief_channel_id) if s.brief_channel_id is not None else None,
        "briefDurationHours": int(s.brief_duration_hours),
        "autoGenerateBriefs": bool(s.auto_generate_briefs),
        "language": s.language,
    }


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        clean = value.strip().lower()
        if clean in {"true", "1", "yes", "on"}:
            return True
        if clean in {"false", "0", "no", "off", ""}:
            return False
        raise ValueError(f"Invalid flag: {value!r}")
    return bool(value)


def _settings_from_record(guild_key: str, record: dict[str, Any]) -> ServerSettings:
    channel_raw = record.get("briefChannelId")
    return ServerSettings(
        guild_id=int(record.get("guildId") or guild_key),
        brief_channel_id=int(channel_raw) if channel_raw not in (None, "") else None,
        brief_duration_hours=_validate_duration(record.get("briefDurationHours", DEFAULT_BRIEF_DURATION_HOURS)),
        auto_generate_briefs=_parse_flag(record.get("autoGenerateBriefs", False)),
        language=_validate_language(record.get("language") or "fr"),
    )


def _validate_duration(value: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"Invalid brief duration: {value!r}")
    try:
        hours = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid brief duration: {value!r}") from exc
    if hours <= 0:
        raise ValueError(f"Invalid brief duration: {value!r} (expected a positive integer)")
    return hours


def _validate_language(value: Any) -> str:
    lang = str(value or "").strip().lower()
    if lang not in SETTINGS_LANGUAGES:
        raise ValueError(f"Invalid language: {value!r} (expected fr or en)")
    return lang


def read_settings_sync(path: str | Path) -> dict[int, ServerSettings]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("Settings file must contain a top-level mapping")
    out: dict[int, ServerSettings] = {}
    for guild_key, record in raw.items():
        if not isinstance(record, dict):
            print(f"[Settings] WARNING skipping guild {guild_key}: record is not an object")
            continue
        try:
            s = _settings_from_record(str(guild_key), record)
        except (TypeError, ValueError) as e:
            print(f"[Settings] WARNING skipping guild {guild_key}: {e}")
            continue
        out[s.guild_id] = s
    return out


def write_settings_sync(path: str | Path, settings: dict[int, ServerSettings]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {str(gid): _settings_to_record(s) for gid, s in settings.items()}
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_name, p)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class SettingsStore:
    def __init__(self, *, path: str | Path) -> None:
        self.path = str(path)
        self._settings: dict[int, ServerSettings] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        try:
            loaded = await asyncio.to_thread(read_settings_sync, self.path)
        except FileNotFoundError:
            print(f"[Settings] no settings file at {self.path}; using defaults")
            await self._write()
            return
        except (OSError, ValueError) as e:
            print(f"[Settings] could not load {self.path}: {e}; using defaults")
            return
        self._settings = loaded
        print(f"[Settings] loaded guilds={len(loaded)} path={self.path}")

    async def _write(self) -> bool:
        snapshot = dict(self._settings)
        try:
            async with self._lock:
                await asyncio.to_thread(write_settings_sync, self.path, snapshot)
        except OSError as e:
            print(f"[Settings] WARNING could not write {self.path}: {e}; keeping in-memory settings")
            return False
        return True

    def get(self, guild_id: int) -> ServerSettings:
        gid = int(guild_id)
        if gid not in self._settings:
            self._settings[gid] = ServerSettings(guild_id=gid)
        return replace(self._settings[gid])

    def all(self) -> list[ServerSettings]:
        return [replace(s) for s in self._settings.values()]

    async def update(self, guild_id: int, **fields: Any) -> ServerSettings:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown settings fields: {', '.join(sorted(unknown))}")
        clean: dict[str, Any] = {}
        if "brief_channel_id" in fields:
            raw = fields["brief_channel_id"]
            clean["brief_channel_id"] = int(raw) if raw is not None else None
        if "brief_duration_hours" in fields:
            clean["brief_duration_hours"] = _validate_duration(fields["brief_duration_hours"])
        if "auto_generate_briefs" in fields:
            clean["auto_generate_briefs"] = bool(fields["auto_generate_briefs"])
        if "language" in fields:
            clean["language"] = _validate_language(fields["language"])

        gid = int(guild_id)
        current = self._settings.get(gid) or ServerSettings(guild_id=gid)
        updated = replace(current, **clean)
        self._settings[gid] = updated
        await self._write()
        print(f"[Settings] updated guild={gid} fields={sorted(clean)}")
        return replace(updated)
