DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

DEFAULT_BRIEFS_PATH = "data/briefs.json"
DEFAULT_SETTINGS_PATH = "config/servers.json"

DEFAULT_TIMEZONE = "Europe/Paris"
DEFAULT_EXPIRY_CRON = "0 * * * *"
DEFAULT_DAILY_CRON = "0 10 * * *"

# !brief.new days option
DEFAULT_BRIEF_DAYS = 2
MAX_BRIEF_DAYS = 14
