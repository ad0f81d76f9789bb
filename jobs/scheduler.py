from __future__ import annotations

import asyncio
import functools
from datetime import datetime
from datetime import timedelta
from typing import Awaitable
from typing import Callable

from apscheduler.triggers.cron import CronTrigger

from briefs.errors import BriefNotFoundError
from briefs.models import Brief
from config.defaults import DEFAULT_DAILY_CRON
from config.defaults import DEFAULT_EXPIRY_CRON
from misc.discord_timestamps import require_timezone
from settings.store import ServerSettings


EXPIRY_TIMER_KEY = "check-expired"
DAILY_TIMER_KEY = "daily-brief"


def custom_timer_key(channel_id: int) -> str:
    return f"custom-{int(channel_id)}"


def _report_orphaned_tick(key: str, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        print(f"[Scheduler] timer={key} tick error after stop: {exc}")


class BriefScheduler:
    def __init__(
        self,
        *,
        brief_manager,
        settings_store,
        timezone_name: str = "UTC",
        expiry_cron: str = DEFAULT_EXPIRY_CRON,
        daily_cron: str = DEFAULT_DAILY_CRON,
    ) -> None:
        self.brief_manager = brief_manager
        self.settings_store = settings_store
        self.tz = require_timezone(timezone_name)
        self.expiry_trigger = self._trigger(expiry_cron)
        self.daily_trigger = self._trigger(daily_cron)
        self._timers: dict[str, asyncio.Task] = {}
        self._custom_schedules: dict[str, tuple[str, float, str]] = {}

    def _trigger(self, cron_expression: str) -> CronTrigger:
        expr = (cron_expression or "").strip()
        if not expr:
            raise ValueError("Empty cron expression")
        try:
            return CronTrigger.from_crontab(expr, timezone=self.tz)
        except ValueError as exc:
            raise ValueError(f"Invalid cron expression {expr!r}: {exc}") from exc

    @property
    def running(self) -> bool:
        return EXPIRY_TIMER_KEY in self._timers

    def scheduled_keys(self) -> list[str]:
        return sorted(self._timers)

    def start(self) -> None:
        if self.running:
            return
        self._timers[EXPIRY_TIMER_KEY] = asyncio.create_task(
            self._timer_loop(EXPIRY_TIMER_KEY, self.expiry_trigger, self.run_expiry_sweep)
        )
        self._timers[DAILY_TIMER_KEY] = asyncio.create_task(
            self._timer_loop(DAILY_TIMER_KEY, self.daily_trigger, self.run_daily_generation)
        )
        print(f"[Scheduler] started tz={self.tz.key}")

    def stop(self) -> None:
        for task in self._timers.values():
            task.cancel()
        stopped = len(self._timers)
        self._timers.clear()
        self._custom_schedules.clear()
        print(f"[Scheduler] stopped timers={stopped}")

    async def _timer_loop(self, key: str, trigger: CronTrigger, job: Callable[[], Awaitable[object]]) -> None:
        last_fire: datetime | None = None
        while True:
            now = datetime.now(self.tz)
            if last_fire is not None and now <= last_fire:
                # sleep can wake a hair early; never fire the same slot twice
                now = last_fire + timedelta(seconds=1)
            # missed slots are coalesced into the next one
            next_fire = trigger.get_next_fire_time(None, now)
            if next_fire is None:
                print(f"[Scheduler] timer={key} has no further fire times")
                return
            delay = (next_fire - datetime.now(self.tz)).total_seconds()
            await asyncio.sleep(max(0.0, delay))
            last_fire = next_fire
            tick = asyncio.create_task(job())
            try:
                await asyncio.shield(tick)
            except asyncio.CancelledError:
                # stop() cancels the timer, not a tick that already started
                tick.add_done_callback(functools.partial(_report_orphaned_tick, key))
                raise
            except Exception as e:
                print(f"[Scheduler] timer={key} tick error: {e}")

    def _settings_for_brief(self, brief: Brief) -> ServerSettings | None:
        all_settings = self.settings_store.all()
        if brief.guild_id is not None:
            for s in all_settings:
                if s.guild_id == brief.guild_id:
                    return s
        for s in all_settings:
            if s.brief_channel_id is not None and s.brief_channel_id == brief.channel_id:
                return s
        return None

    async def run_expiry_sweep(self) -> int:
        expired = self.brief_manager.get_expired_briefs()
        if not expired:
            return 0
        print(f"[Scheduler] expiry sweep expired={len(expired)}")

        renewed = 0
        for brief in expired:
            try:
                await self.brief_manager.complete_brief(brief.id)
            except BriefNotFoundError:
                print(f"[Scheduler] brief {brief.id} already closed; skipping")
                continue
            except Exception as e:
                print(f"[Scheduler] could not complete brief {brief.id}: {e}")
                continue

            try:
                settings = self._settings_for_brief(brief)
                if settings is None or not settings.auto_generate_briefs:
                    continue
                new_brief = await self.brief_manager.create_brief(
                    brief.channel_id,
                    settings.brief_duration_hours,
                    language=settings.language,
                    guild_id=settings.guild_id,
                )
                if new_brief:
                    renewed += 1
                    print(f"[Scheduler] auto-generated brief {new_brief.id} for channel {brief.channel_id}")
                else:
                    print(f"[Scheduler] failed to auto-generate brief for channel {brief.channel_id}")
            except Exception as e:
                print(f"[Scheduler] renewal error brief={brief.id} channel={brief.channel_id}: {e}")
        return renewed

    async def run_daily_generation(self) -> int:
        created = 0
        for settings in self.settings_store.all():
            if not settings.auto_generate_briefs or not settings.brief_channel_id:
                continue
            try:
                if self.brief_manager.get_active_briefs_for_channel(settings.brief_channel_id):
                    continue
                new_brief = await self.brief_manager.create_brief(
                    settings.brief_channel_id,
                    settings.brief_duration_hours,
                    language=settings.language,
                    guild_id=settings.guild_id,
                )
                if new_brief:
                    created += 1
                    print(f"[Scheduler] daily brief generated for guild {settings.guild_id}")
                else:
                    print(f"[Scheduler] failed to generate daily brief for guild {settings.guild_id}")
            except Exception as e:
                print(f"[Scheduler] daily generation error guild={settings.guild_id}: {e}")
        return created

    def schedule_custom_brief(
        self,
        channel_id: int,
        cron_expression: str,
        duration_hours: float,
        *,
        language: str = "fr",
        guild_id: int | None = None,
    ) -> str:
        if float(duration_hours) <= 0:
            raise ValueError(f"duration_hours must be positive, got {duration_hours!r}")
        trigger = self._trigger(cron_expression)
        key = custom_timer_key(channel_id)

        async def _job() -> None:
            new_brief = await self.brief_manager.create_brief(
                int(channel_id),
                duration_hours,
                language=language,
                guild_id=guild_id,
            )
            if not new_brief:
                print(f"[Scheduler] failed to create custom scheduled brief for channel {channel_id}")

        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._timers[key] = asyncio.create_task(self._timer_loop(key, trigger, _job))
        self._custom_schedules[key] = (cron_expression.strip(), float(duration_hours), language)
        print(f"[Scheduler] custom brief scheduled channel={channel_id} cron={cron_expression.strip()!r}")
        return key

    def unschedule_custom_brief(self, channel_id: int) -> bool:
        key = custom_timer_key(channel_id)
        task = self._timers.pop(key, None)
        self._custom_schedules.pop(key, None)
        if task is None:
            return False
        task.cancel()
        print(f"[Scheduler] custom brief unscheduled channel={channel_id}")
        return True

    def custom_schedules(self) -> dict[str, tuple[str, float, str]]:
        return dict(self._custom_schedules)
