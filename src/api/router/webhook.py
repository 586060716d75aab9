"""Webhook endpoint receiving Telegram bot updates."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.core.dependencies import get_steps_bot
from src.core.service.chat.bot_service import StepsBot
from src.core.service.chat.models.telegram import TelegramUpdate
from src.core.logger.logger import logger

router = APIRouter(tags=["telegram"])


class WebhookResponse(BaseModel):
    """Response model for webhook endpoint."""
    ok: bool = True
    handled: bool = False


@router.post("/webhook/telegram", response_model=WebhookResponse)
async def telegram_webhook(
    update: TelegramUpdate,
    bot: StepsBot = Depends(get_steps_bot)
) -> WebhookResponse:
    """
    Handle a Telegram update. Telegram only needs a 200 back; the reply itself
    is sent through the Bot API.

    Body:
        update: Telegram Update object
    """
    reply = await bot.handle_update(update)

    logger.info(
        "Telegram update processed",
        extra={"update_id": update.update_id, "handled": reply is not None}
    )

    return WebhookResponse(handled=reply is not None)
