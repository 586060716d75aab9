"""
Telegram Bot API client for sending replies
"""

import httpx
from typing import Optional

from src.core.http_client import HTTPClientConfig
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class TelegramClient:
    """Sends chat messages through the Bot API; logs only when no token is configured"""

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.token = token if token is not None else settings.TELEGRAM_BOT_TOKEN
        self.api_url = (api_url or settings.TELEGRAM_API_URL).rstrip("/")
        self._client = http_client

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(**HTTPClientConfig.create_client_config("telegram"))
        return self._client

    async def send_message(self, chat_id: int, text: str, parse_mode: Optional[str] = "Markdown") -> bool:
        """
        Send a message to a chat

        Args:
            chat_id: Target chat
            text: Message body
            parse_mode: Telegram parse mode, None for plain text

        Returns:
            True if Telegram accepted the message
        """
        if not self.enabled:
            logger.info(
                "Telegram token not configured - reply not sent",
                extra={"chat_id": chat_id, "text": text}
            )
            return False

        payload = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            response = await self._get_client().post(
                f"{self.api_url}/bot{self.token}/sendMessage",
                json=payload
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                "Failed to send Telegram message",
                extra={"chat_id": chat_id, "error": str(e)}
            )
            return False

        logger.debug("Telegram message sent", extra={"chat_id": chat_id})
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
