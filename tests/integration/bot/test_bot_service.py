import json
from datetime import date

import httpx
import pytest

from src.core.exceptions.base import StorageUnavailableError
from src.core.service.chat.bot_service import NOT_REGISTERED, REGISTER_FIRST, StepsBot
from src.core.service.chat.commands import parse_command
from src.core.service.chat.models.telegram import TelegramMessage, TelegramUpdate
from src.core.service.chat.telegram_client import TelegramClient

WEDNESDAY = date(2024, 3, 27)


class RecordingTelegram:
    def __init__(self):
        self.sent = []

    async def send_message(self, chat_id, text, parse_mode="Markdown"):
        self.sent.append((chat_id, text, parse_mode))
        return True

    async def close(self):
        pass


def make_message(text: str, user_id: int = 42, first_name: str = "Ann") -> TelegramMessage:
    return TelegramMessage.model_validate({
        "message_id": 1,
        "chat": {"id": -100, "type": "group"},
        "from": {"id": user_id, "first_name": first_name},
        "text": text,
    })


@pytest.fixture
def telegram():
    return RecordingTelegram()


@pytest.fixture
def bot(memory_engine, telegram):
    return StepsBot(memory_engine, telegram=telegram)


async def send(bot, text, user_id=42, today=WEDNESDAY):
    return await bot.handle_command(parse_command(text), make_message(text, user_id), today)


@pytest.mark.asyncio
class TestCommands:

    async def test_register_then_log_and_view_stats(self, bot):
        assert (await send(bot, "/register")).text.startswith("🎉 Welcome Ann!")

        reply = await send(bot, "/steps 1,500")
        assert reply.text == "✅ Logged 1500 steps for today!"

        stats = await send(bot, "/mystats")
        assert stats.markdown is True
        assert "👟 Today: 1500" in stats.text

    async def test_steps_overwrite(self, bot, memory_engine):
        await send(bot, "/register")
        await send(bot, "/steps 5")
        await send(bot, "/steps 9")

        entries = await memory_engine.entries_for("42")
        assert [(e.day, e.steps) for e in entries] == [(WEDNESDAY, 9)]

    async def test_steps_usage(self, bot):
        await send(bot, "/register")

        for text in ("/steps", "/steps many", "/steps -3"):
            assert (await send(bot, text)).text == "❌ Usage: /steps <number>"

    async def test_unregistered_user_is_asked_to_register(self, bot):
        assert (await send(bot, "/steps 100")).text == REGISTER_FIRST
        assert (await send(bot, "/mystats")).text == REGISTER_FIRST
        assert (await send(bot, "/reset")).text == REGISTER_FIRST
        assert (await send(bot, "/delete")).text == NOT_REGISTERED

    async def test_reset(self, bot, memory_engine):
        await send(bot, "/register")
        await send(bot, "/steps 800")

        reply = await send(bot, "/reset")

        assert reply.text == "🔄 Your steps for today have been reset to 0."
        assert [e.steps for e in await memory_engine.entries_for("42")] == [0]

    async def test_delete(self, bot, memory_engine):
        await send(bot, "/register")
        await send(bot, "/steps 800")

        reply = await send(bot, "/delete")

        assert reply.text.startswith("🗑️ You have been removed")
        assert await memory_engine.is_registered("42") is False

    async def test_leaderboards(self, bot):
        await send(bot, "/register", user_id=1)
        await send(bot, "/register", user_id=2)
        await send(bot, "/steps 300", user_id=1)
        await send(bot, "/steps 700", user_id=2)

        reply = await send(bot, "/daily")

        assert reply.markdown is True
        assert reply.text == (
            "🏆 *DAILY LEADERBOARD*\n\n"
            "🥇 *1.* User 2 - 700 steps\n"
            "🥈 *2.* User 1 - 300 steps\n"
        )
        assert "No data yet!" in (await send(bot, "/monthly", today=date(2024, 5, 1))).text

    async def test_help(self, bot):
        reply = await send(bot, "/help")
        assert "/register - Join the challenge" in reply.text

    async def test_storage_failure_is_reported_politely(self, bot, memory_engine, monkeypatch):
        await send(bot, "/register")

        async def broken_upsert(*args, **kwargs):
            raise StorageUnavailableError("Step storage is unavailable", operation="upsert_entry")

        monkeypatch.setattr(memory_engine.store, "upsert_entry", broken_upsert)

        assert (await send(bot, "/steps 100")).text == "❌ Error saving steps."

    async def test_oversized_step_count_is_rejected(self, engine):
        bot = StepsBot(engine, telegram=RecordingTelegram())
        await send(bot, "/register")
        await send(bot, "/steps 500")

        assert (await send(bot, "/steps 99999999999999999999")).text == "❌ Error saving steps."

        entries = await engine.entries_for("42")
        assert [(e.day, e.steps) for e in entries] == [(WEDNESDAY, 500)]


@pytest.mark.asyncio
class TestHandleUpdate:

    async def test_reply_is_sent_to_chat(self, bot, telegram):
        update = TelegramUpdate.model_validate({
            "update_id": 10,
            "message": {
                "message_id": 5,
                "chat": {"id": -100},
                "from": {"id": 42, "first_name": "Ann"},
                "text": "/help",
            },
        })

        reply = await bot.handle_update(update)

        assert reply is not None
        assert telegram.sent == [(-100, reply.text, "Markdown")]

    async def test_plain_replies_have_no_parse_mode(self, bot, telegram):
        update = TelegramUpdate.model_validate({
            "update_id": 11,
            "message": {"message_id": 6, "chat": {"id": 9}, "from": {"id": 42}, "text": "/steps 10"},
        })

        await bot.handle_update(update)

        assert telegram.sent == [(9, REGISTER_FIRST, None)]

    async def test_non_command_is_ignored(self, bot, telegram):
        update = TelegramUpdate.model_validate({
            "update_id": 12,
            "message": {"message_id": 7, "chat": {"id": 9}, "from": {"id": 42}, "text": "nice walk today"},
        })

        assert await bot.handle_update(update) is None
        assert telegram.sent == []

    async def test_update_without_message_is_ignored(self, bot, telegram):
        assert await bot.handle_update(TelegramUpdate(update_id=13)) is None


@pytest.mark.asyncio
class TestTelegramClient:

    async def test_send_message_posts_to_bot_api(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        client = TelegramClient(
            token="123:abc",
            api_url="https://telegram.test",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        assert await client.send_message(55, "hi *there*") is True
        await client.close()

        assert str(requests[0].url) == "https://telegram.test/bot123:abc/sendMessage"
        assert json.loads(requests[0].content) == {"chat_id": 55, "text": "hi *there*", "parse_mode": "Markdown"}

    async def test_api_error_returns_false(self):
        client = TelegramClient(
            token="123:abc",
            api_url="https://telegram.test",
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"ok": False}))
            ),
        )

        assert await client.send_message(55, "hi", parse_mode=None) is False
        await client.close()

    async def test_without_token_nothing_is_sent(self):
        client = TelegramClient(token="")

        assert client.enabled is False
        assert await client.send_message(55, "hi") is False

    async def test_default_client_uses_telegram_timeout(self):
        from src.core.http_client import HTTPClientConfig
        from src.infra.config.settings import settings

        client = TelegramClient(token="123:abc")
        http_client = client._get_client()

        assert http_client.timeout.read == HTTPClientConfig.get_timeout("telegram") == settings.HTTP_TELEGRAM_TIMEOUT
        assert http_client.headers["User-Agent"].startswith(settings.APP_NAME)
        await client.close()
