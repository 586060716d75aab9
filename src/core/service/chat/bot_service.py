"""
Steps challenge chat bot: turns chat commands into engine calls
"""

from datetime import date
from typing import NamedTuple, Optional

from src.core.exceptions.base import ServiceError, StorageUnavailableError, UnknownUserError
from src.core.service.chat import formatter
from src.core.service.chat.commands import BotCommand, ParsedCommand, parse_command, parse_step_count
from src.core.service.chat.models.telegram import TelegramMessage, TelegramUpdate
from src.core.service.chat.telegram_client import TelegramClient
from src.core.service.steps import windows
from src.core.service.steps.engine import StepsEngine
from src.core.service.steps.models import Window
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

REGISTER_FIRST = "❌ Please register first using /register."
NOT_REGISTERED = "❌ You are not registered."

LEADERBOARD_COMMANDS = {
    BotCommand.DAILY: Window.DAILY,
    BotCommand.WEEKLY: Window.WEEKLY,
    BotCommand.MONTHLY: Window.MONTHLY,
}


class BotReply(NamedTuple):
    text: str
    markdown: bool = False


class StepsBot:
    """Dispatches one chat message at a time to the steps engine"""

    def __init__(self, engine: StepsEngine, telegram: Optional[TelegramClient] = None):
        self.engine = engine
        self.telegram = telegram or TelegramClient()

    async def handle_update(self, update: TelegramUpdate) -> Optional[BotReply]:
        """
        Handle one webhook update and send the reply back to its chat.

        Returns:
            The reply, or None when the message is not a bot command
        """
        message = update.message
        if message is None or message.from_user is None:
            return None

        parsed = parse_command(message.text)
        if parsed is None:
            return None

        reply = await self.handle_command(parsed, message, windows.today())
        await self.telegram.send_message(
            message.chat.id, reply.text, parse_mode="Markdown" if reply.markdown else None
        )
        return reply

    async def handle_command(self, parsed: ParsedCommand, message: TelegramMessage, today: date) -> BotReply:
        """Run one command; `today` is captured once per message."""
        user_id = str(message.from_user.id)
        name = message.from_user.first_name or "User"
        command = parsed.command

        logger.info("Bot command received", extra={"command": command.value, "user_id": user_id})

        if command in (BotCommand.HELP, BotCommand.START):
            return BotReply(formatter.HELP_TEXT, markdown=True)

        if command is BotCommand.REGISTER:
            return await self._run(
                self._register(user_id, name), failure="❌ Failed to register."
            )

        if command is BotCommand.STEPS:
            steps = parse_step_count(parsed.args)
            if steps is None:
                return BotReply("❌ Usage: /steps <number>")
            return await self._run(
                self._log_steps(user_id, today, steps), failure="❌ Error saving steps."
            )

        if command is BotCommand.MYSTATS:
            return await self._run(
                self._stats(user_id, name, today), failure="❌ Could not retrieve your stats."
            )

        if command is BotCommand.RESET:
            return await self._run(
                self._reset(user_id, today), failure="❌ Could not reset steps."
            )

        if command is BotCommand.DELETE:
            return await self._run(
                self._delete(user_id), failure="❌ Failed to delete your data.", unknown_user=NOT_REGISTERED
            )

        return await self._run(
            self._leaderboard(LEADERBOARD_COMMANDS[command], today), failure="❌ Failed to fetch leaderboard."
        )

    async def _run(self, call, failure: str, unknown_user: str = REGISTER_FIRST) -> BotReply:
        try:
            return await call
        except UnknownUserError:
            return BotReply(unknown_user)
        except StorageUnavailableError as e:
            logger.error("Bot command failed", extra={"error": e.message, "operation": e.operation})
            return BotReply(failure)
        except ServiceError as e:
            logger.warning("Bot command rejected", extra={"error_code": e.code, "error": e.message})
            return BotReply(failure)

    async def _register(self, user_id: str, name: str) -> BotReply:
        await self.engine.register(user_id)
        return BotReply(formatter.format_welcome(name))

    async def _log_steps(self, user_id: str, today: date, steps: int) -> BotReply:
        await self.engine.report(user_id, today, steps)
        return BotReply(formatter.format_logged(steps))

    async def _stats(self, user_id: str, name: str, today: date) -> BotReply:
        stats = await self.engine.stats_for(user_id, today)
        return BotReply(formatter.format_stats(name, stats), markdown=True)

    async def _reset(self, user_id: str, today: date) -> BotReply:
        await self.engine.reset(user_id, today)
        return BotReply("🔄 Your steps for today have been reset to 0.")

    async def _delete(self, user_id: str) -> BotReply:
        await self.engine.delete_user(user_id)
        return BotReply("🗑️ You have been removed from the challenge. Use /register to join again.")

    async def _leaderboard(self, window: Window, today: date) -> BotReply:
        leaderboard = await self.engine.rank(window, today)
        return BotReply(formatter.format_leaderboard(leaderboard), markdown=True)

    async def close(self) -> None:
        await self.telegram.close()
