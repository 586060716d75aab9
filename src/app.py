import json
from datetime import datetime
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from src.infra.config.settings import settings
from src.core.logger.logger import logger
from src.api.router import health, steps, leaderboard, webhook
from src.api.middleware.logging.request_logging import RequestLoggingMiddleware
from src.api.utils.metrics import get_metrics
from src.core.exceptions.handler import ServiceError, GlobalErrorHandler
from src.core.service.chat.bot_service import StepsBot
from src.core.service.chat.telegram_client import TelegramClient
from src.core.service.steps.engine import StepsEngine
from src.infra.repository.factory import create_step_store

def create_app(
    steps_engine: Optional[StepsEngine] = None,
    telegram_client: Optional[TelegramClient] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        steps_engine: Engine to serve; when omitted one is created on startup
            from STORAGE_BACKEND
        telegram_client: Client used by the bot to send replies
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
Steps Challenge API - daily step tracking and leaderboards for a small group.

## Services
- **Steps**: report, reset and list daily step counts
- **Stats**: today, this week, this month and all-time totals
- **Leaderboards**: daily, weekly and monthly rankings
- **Telegram**: chat bot webhook
        """,
        version=settings.APP_VERSION,
        docs_url="/",
        redoc_url="/redoc"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
        max_age=600,  # 10 minutes
    )

    # Request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    # Include routers
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(steps.router, prefix="/api/v1")
    app.include_router(leaderboard.router, prefix="/api/v1")
    app.include_router(webhook.router)

    app.state.steps_engine = steps_engine
    app.state.steps_bot = None

    @app.on_event("startup")
    async def startup_event():
        logger.info(json.dumps({
            "message": "Starting Steps Challenge API",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "storage_backend": settings.STORAGE_BACKEND if steps_engine is None else steps_engine.store.name
        }))

        if app.state.steps_engine is None:
            store = await create_step_store()
            app.state.steps_engine = StepsEngine(
                store, leaderboard_limit=settings.LEADERBOARD_LIMIT, metrics=get_metrics()
            )
        else:
            await app.state.steps_engine.connect()

        app.state.steps_bot = StepsBot(app.state.steps_engine, telegram_client)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info(json.dumps({
            "message": "Shutting down Steps Challenge API",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION
        }))

        if app.state.steps_bot is not None:
            await app.state.steps_bot.close()
        if app.state.steps_engine is not None:
            await app.state.steps_engine.close()

    return app
