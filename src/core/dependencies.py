"""
FastAPI dependency injection functions.
"""

from fastapi import Request

from src.core.service.chat.bot_service import StepsBot
from src.core.service.steps.engine import StepsEngine


def get_steps_engine(request: Request) -> StepsEngine:
    """Get the application's steps engine."""
    return request.app.state.steps_engine


def get_steps_bot(request: Request) -> StepsBot:
    """Get the chat bot bound to the application's steps engine."""
    return request.app.state.steps_bot
