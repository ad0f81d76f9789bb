from __future__ import annotations

import unittest

from misc.alerts import ALERT_HEADER
from misc.alerts import format_admin_alert
from misc.alerts import send_admin_alert


class _FakeUser:
    def __init__(self, fail: bool = False):
        self.sent: list[str] = []
        self.fail = fail

    async def send(self, text: str):
        if self.fail:
            raise RuntimeError("DMs closed")
        self.sent.append(text)


class _FakeBot:
    def __init__(self, *, cached=None, fetched=None, fetch_error: Exception | None = None):
        self.cached = cached
        self.fetched = fetched
        self.fetch_error = fetch_error
        self.fetch_calls = 0

    def get_user(self, user_id: int):
        return self.cached

    async def fetch_user(self, user_id: int):
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.fetched


class AdminAlertFormatTests(unittest.TestCase):
    def test_message_only(self):
        self.assertEqual(format_admin_alert("Generation failed."), f"{ALERT_HEADER}\n\nGeneration failed.")

    def test_error_details_in_code_block(self):
        text = format_admin_alert("Generation failed.", ValueError("bad json"))
        self.assertIn("**Error details:**\n```\nbad json\n```", text)

    def test_empty_error_uses_class_name(self):
        self.assertIn("TimeoutError", format_admin_alert("x", TimeoutError()))

    def test_long_alert_fits_one_message(self):
        self.assertLessEqual(len(format_admin_alert("m" * 3000, "e" * 3000)), 1990)


class SendAdminAlertTests(unittest.IsolatedAsyncioTestCase):
    async def test_sends_to_cached_user(self):
        user = _FakeUser()
        bot = _FakeBot(cached=user)
        self.assertTrue(await send_admin_alert(bot, 7, "hello", RuntimeError("boom")))
        self.assertEqual(len(user.sent), 1)
        self.assertIn("boom", user.sent[0])
        self.assertEqual(bot.fetch_calls, 0)

    async def test_fetches_uncached_user(self):
        user = _FakeUser()
        bot = _FakeBot(fetched=user)
        self.assertTrue(await send_admin_alert(bot, 7, "hello"))
        self.assertEqual(bot.fetch_calls, 1)
        self.assertEqual(len(user.sent), 1)

    async def test_missing_admin_id_is_a_noop(self):
        bot = _FakeBot(cached=_FakeUser())
        self.assertFalse(await send_admin_alert(bot, 0, "hello"))
        self.assertEqual(bot.cached.sent, [])

    async def test_delivery_failures_never_raise(self):
        self.assertFalse(await send_admin_alert(_FakeBot(cached=_FakeUser(fail=True)), 7, "hello"))
        self.assertFalse(await send_admin_alert(_FakeBot(fetch_error=RuntimeError("404")), 7, "hello"))
        self.assertFalse(await send_admin_alert(_FakeBot(), 7, "hello"))


if __name__ == "__main__":
    unittest.main()
