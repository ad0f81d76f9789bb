from __future__ import annotations


ALERT_HEADER = "🚨 **Brief bot alert** 🚨"


def format_admin_alert(message: str, error: BaseException | str | None = None) -> str:
    text = f"{ALERT_HEADER}\n\n{(message or '').strip()}"
    if error is not None:
        detail = str(error).strip() or error.__class__.__name__
        text += f"\n\n**Error details:**\n```\n{detail[:1500]}\n```"
    return text[:1990]


async def send_admin_alert(bot, admin_user_id: int, message: str, error: BaseException | str | None = None) -> bool:
    if not admin_user_id:
        print(f"[Alerts] admin user id not configured; dropping alert: {message}")
        return False
    try:
        admin = bot.get_user(int(admin_user_id))
        if admin is None:
            admin = await bot.fetch_user(int(admin_user_id))
        if admin is None:
            print(f"[Alerts] could not fetch admin user {admin_user_id}")
            return False
        await admin.send(format_admin_alert(message, error))
    except Exception as e:
        print(f"[Alerts] failed to send admin alert: {e}")
        return False
    print(f"[Alerts] alert sent to admin: {message}")
    return True
