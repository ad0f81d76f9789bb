import os
from datetime import datetime, timezone
import discord
from discord.ext import commands
from openai import OpenAI
from briefs.generator import BriefGenerator
from briefs.generator import default_fallback_briefs_path
from briefs.generator import load_fallback_briefs
from briefs.service import BriefManager
from config.defaults import DEFAULT_BRIEF_DAYS
from config.defaults import DEFAULT_BRIEFS_PATH
from config.defaults import DEFAULT_DAILY_CRON
from config.defaults import DEFAULT_EXPIRY_CRON
from config.defaults import DEFAULT_OPENAI_MODEL
from config.defaults import DEFAULT_SETTINGS_PATH
from config.defaults import DEFAULT_TIMEZONE
from config.defaults import MAX_BRIEF_DAYS
from jobs.scheduler import BriefScheduler
from misc.alerts import send_admin_alert
from misc.discord_text import parse_id_set
from misc.discord_text import send_chunked
from misc.runtime_wiring import wire_bot_runtime
from settings.store import SettingsStore

# =========================
# ENV
# =========================
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN env var")

OPENAI_MODEL = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)

ADMIN_USER_ID = int(os.getenv("BRIEFBOT_ADMIN_USER_ID", "0").strip() or 0)
OWNER_USER_IDS = parse_id_set(os.getenv("BRIEFBOT_OWNER_USER_IDS"))
if ADMIN_USER_ID and not OWNER_USER_IDS:
    OWNER_USER_IDS = {ADMIN_USER_ID}

BRIEFS_PATH = os.getenv("BRIEFBOT_BRIEFS_PATH", DEFAULT_BRIEFS_PATH)
SETTINGS_PATH = os.getenv("BRIEFBOT_SETTINGS_PATH", DEFAULT_SETTINGS_PATH)
FALLBACK_BRIEFS_PATH = os.getenv("BRIEFBOT_FALLBACK_BRIEFS_PATH", default_fallback_briefs_path())
OFFLINE_FALLBACK = os.getenv("BRIEFBOT_OFFLINE_FALLBACK", "0").strip() == "1"

TIMEZONE_NAME = os.getenv("BRIEFBOT_TIMEZONE", DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE
EXPIRY_CRON = os.getenv("BRIEFBOT_EXPIRY_CRON", DEFAULT_EXPIRY_CRON).strip() or DEFAULT_EXPIRY_CRON
DAILY_CRON = os.getenv("BRIEFBOT_DAILY_CRON", DEFAULT_DAILY_CRON).strip() or DEFAULT_DAILY_CRON
SCHEDULER_ENABLED = os.getenv("BRIEFBOT_SCHEDULER_ENABLED", "1").strip() == "1"

print(
    f"[CFG] model={OPENAI_MODEL} openai={'on' if OPENAI_API_KEY else 'off'} offline_fallback={OFFLINE_FALLBACK} "
    f"briefs_path={BRIEFS_PATH} settings_path={SETTINGS_PATH} tz={TIMEZONE_NAME} "
    f"expiry_cron={EXPIRY_CRON!r} daily_cron={DAILY_CRON!r} scheduler={SCHEDULER_ENABLED} "
    f"admin={'set' if ADMIN_USER_ID else 'unset'} owners={len(OWNER_USER_IDS)}"
)

if OPENAI_API_KEY:
    client = OpenAI(api_key=OPENAI_API_KEY)
else:
    client = None
    print("[CFG] no OPENAI_API_KEY; brief generation will fail and alert unless offline fallback is on")

fallback_briefs = {}
if OFFLINE_FALLBACK:
    fallback_briefs = load_fallback_briefs(FALLBACK_BRIEFS_PATH)


def utc_iso(dt: datetime | None = None) -> str:
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def user_is_owner(user: discord.abc.User) -> bool:
    uid = int(getattr(user, "id", 0) or 0)
    return bool(uid and uid in OWNER_USER_IDS)


# =========================
# DISCORD BOT
# =========================
intents = discord.Intents.default()
intents.message_content = True

bot = commands.Bot(command_prefix="!", intents=intents)


async def get_channel(channel_id: int):
    ch = bot.get_channel(int(channel_id))
    if ch is not None:
        return ch
    try:
        return await bot.fetch_channel(int(channel_id))
    except discord.DiscordException as e:
        print(f"[Briefs] fetch_channel({channel_id}) failed: {e}")
        return None


async def admin_alert(message: str, error: BaseException | None = None) -> None:
    await send_admin_alert(bot, ADMIN_USER_ID, f"{message}\n_at {utc_iso()}_", error)


settings_store = SettingsStore(path=SETTINGS_PATH)

brief_generator = BriefGenerator(
    client=client,
    openai_model=OPENAI_MODEL,
    fallback_briefs=fallback_briefs,
    offline_fallback=OFFLINE_FALLBACK,
)

brief_manager = BriefManager(
    generator=brief_generator,
    store_path=BRIEFS_PATH,
    get_channel=get_channel,
    alert_func=admin_alert,
)

brief_scheduler = BriefScheduler(
    brief_manager=brief_manager,
    settings_store=settings_store,
    timezone_name=TIMEZONE_NAME,
    expiry_cron=EXPIRY_CRON,
    daily_cron=DAILY_CRON,
)

wire_bot_runtime(
    bot,
    user_is_owner=user_is_owner,
    send_chunked=send_chunked,
    settings_store=settings_store,
    brief_manager=brief_manager,
    brief_scheduler=brief_scheduler,
    scheduler_enabled=SCHEDULER_ENABLED,
    default_brief_days=DEFAULT_BRIEF_DAYS,
    max_brief_days=MAX_BRIEF_DAYS,
)


bot.run(DISCORD_TOKEN)
