from __future__ import annotations

import asyncio
import re
import time
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Any
from typing import Awaitable
from typing import Callable

from briefs.errors import BriefNotFoundError
from briefs.formatting import build_brief_embed
from briefs.models import Brief
from briefs.models import BriefStatus
from briefs.store import read_all_sync
from briefs.store import write_all_sync


_LEADING_INT = re.compile(r"^\s*(\d+)")


def parse_deadline_days(deadline_label: str | None, duration_hours: float) -> float:
    """Leading integer of the generator's label ("5 jours" -> 5), else duration_hours / 24."""
    m = _LEADING_INT.match(deadline_label or "")
    if m:
        days = int(m.group(1))
        if days > 0:
            return float(days)
    return float(duration_hours) / 24.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BriefManager:
    def __init__(
        self,
        *,
        generator,
        store_path: str,
        get_channel: Callable[[int], Awaitable[Any]],
        alert_func: Callable[..., Awaitable[None]],
        store_lock: asyncio.Lock | None = None,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        self.generator = generator
        self.store_path = str(store_path)
        self.get_channel = get_channel
        self.alert_func = alert_func
        self.store_lock = store_lock or asyncio.Lock()
        self.now_func = now_func or _utc_now

        self._active: dict[str, Brief] = {}
        # terminal briefs stay queryable until restart; never persisted
        self._history: dict[str, Brief] = {}
        self._last_id_ms = 0
        self._loading = False
        self._persist_deferred = False

    def _next_id(self) -> str:
        ms = int(time.time() * 1000)
        if ms <= self._last_id_ms:
            ms = self._last_id_ms + 1
        while str(ms) in self._active or str(ms) in self._history:
            ms += 1
        self._last_id_ms = ms
        return str(ms)

    async def load(self) -> int:
        self._loading = True
        try:
            loaded = await self._read_active()
        finally:
            self._loading = False

        # briefs created while the store was loading win over stored copies
        self._active = {**loaded, **self._active}
        if self._active:
            self._last_id_ms = max(self._last_id_ms, *(int(i) for i in self._active if i.isdigit()), 0)
        if self._persist_deferred:
            self._persist_deferred = False
            await self._persist()
        if loaded:
            print(f"[Briefs] restored active={len(loaded)} path={self.store_path}")
        return len(loaded)

    async def _read_active(self) -> dict[str, Brief]:
        try:
            records = await asyncio.to_thread(read_all_sync, self.store_path)
        except FileNotFoundError:
            print(f"[Briefs] no brief store at {self.store_path}; starting empty")
            return {}
        except (OSError, ValueError) as e:
            print(f"[Briefs] WARNING could not read brief store {self.store_path}: {e}; starting empty")
            return {}
        return {b.id: b for b in records if b.is_active}

    async def _persist(self) -> bool:
        if self._loading:
            # written once load() has merged the stored briefs
            self._persist_deferred = True
            return True
        snapshot = [b.copy() for b in self._active.values()]
        try:
            async with self.store_lock:
                await asyncio.to_thread(write_all_sync, self.store_path, snapshot)
        except Exception as e:
            print(f"[Briefs] persist error path={self.store_path} active={len(snapshot)}: {e}")
            return False
        return True

    async def _alert(self, message: str, error: BaseException | None = None) -> None:
        try:
            await self.alert_func(message, error)
        except Exception as e:
            print(f"[Briefs] admin alert failed: {e}")

    async def _post_brief(self, brief: Brief, language: str) -> int | None:
        try:
            channel = await self.get_channel(int(brief.channel_id))
        except Exception as e:
            print(f"[Briefs] could not fetch channel {brief.channel_id}: {e}")
            return None
        if channel is None or not hasattr(channel, "send"):
            print(f"[Briefs] channel {brief.channel_id} not found or not a text channel")
            return None
        try:
            msg = await channel.send(embed=build_brief_embed(brief, language))
        except Exception as e:
            print(f"[Briefs] could not post brief {brief.id} to channel {brief.channel_id}: {e}")
            return None
        return int(getattr(msg, "id", 0) or 0) or None

    async def create_brief(
        self,
        channel_id: int,
        duration_hours: float = 48,
        *,
        language: str = "fr",
        guild_id: int | None = None,
    ) -> Brief | None:
        if float(duration_hours) <= 0:
            raise ValueError(f"duration_hours must be positive, got {duration_hours!r}")
        try:
            generated = await asyncio.to_thread(self.generator.generate, language)
        except Exception as e:
            print(f"[Briefs] generation failed channel={channel_id}: {e}")
            await self._alert(f"Failed to generate a brief for channel <#{channel_id}>.", e)
            return None

        days = parse_deadline_days(generated.deadline_label, duration_hours)
        created_at = self.now_func()
        brief = Brief(
            id=self._next_id(),
            company_name=generated.company_name,
            company_description=generated.company_description,
            job_description=generated.job_description,
            deadline_label=generated.deadline_label,
            created_at=created_at,
            deadline=created_at + timedelta(hours=days * 24),
            channel_id=int(channel_id),
            status=BriefStatus.ACTIVE,
            guild_id=int(guild_id) if guild_id is not None else None,
        )

        brief.message_id = await self._post_brief(brief, language)

        self._active[brief.id] = brief
        await self._persist()
        print(
            f"[Briefs] created id={brief.id} channel={brief.channel_id} "
            f"deadline={brief.deadline.isoformat()} posted={'yes' if brief.message_id else 'no'}"
        )
        return brief.copy()

    async def _finish(self, brief_id: str, status: BriefStatus) -> Brief:
        key = str(brief_id)
        brief = self._active.pop(key, None)
        if brief is None:
            raise BriefNotFoundError(key)
        brief.status = status
        self._history[key] = brief
        await self._persist()
        print(f"[Briefs] {status.value} id={key}")
        return brief.copy()

    async def complete_brief(self, brief_id: str) -> Brief:
        return await self._finish(brief_id, BriefStatus.COMPLETED)

    async def cancel_brief(self, brief_id: str) -> Brief:
        return await self._finish(brief_id, BriefStatus.CANCELLED)

    def get_active_briefs(self) -> list[Brief]:
        return [b.copy() for b in self._active.values()]

    def get_active_briefs_for_channel(self, channel_id: int) -> list[Brief]:
        return [b.copy() for b in self._active.values() if b.channel_id == int(channel_id)]

    def get_expired_briefs(self, now: datetime | None = None) -> list[Brief]:
        at = now or self.now_func()
        return [b.copy() for b in self._active.values() if b.is_expired(at)]

    def get_brief_by_id(self, brief_id: str) -> Brief | None:
        key = str(brief_id)
        brief = self._active.get(key) or self._history.get(key)
        return brief.copy() if brief else None

    def get_stats(self) -> dict[str, int]:
        now = self.now_func()
        terminal = list(self._history.values())
        return {
            "active": len(self._active),
            "expired_pending": sum(1 for b in self._active.values() if b.is_expired(now)),
            "completed": sum(1 for b in terminal if b.status == BriefStatus.COMPLETED),
            "cancelled": sum(1 for b in terminal if b.status == BriefStatus.CANCELLED),
        }
