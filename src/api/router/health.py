import json
from fastapi import APIRouter, Depends, Request, status
from datetime import datetime
from typing import Dict

from src.core.logger.logger import logger
from src.core.dependencies import get_steps_engine
from src.core.exceptions.base import StorageUnavailableError
from src.core.service.steps.engine import StepsEngine
from src.api.utils.metrics import get_metrics
from src.infra.config.settings import settings

router = APIRouter()


async def check_storage_health(engine: StepsEngine) -> Dict[str, str]:
    """Check step store health."""
    try:
        await engine.store.ping()
        return {"status": "healthy", "backend": engine.store.name, "message": "Connected"}
    except StorageUnavailableError as e:
        return {"status": "unhealthy", "backend": engine.store.name, "message": f"Connection failed: {e.message}"}


def check_bot_health() -> Dict[str, str]:
    """Report whether replies can be delivered to Telegram."""
    if settings.TELEGRAM_BOT_TOKEN:
        return {"status": "healthy", "message": "configured"}
    return {"status": "not_configured", "message": "TELEGRAM_BOT_TOKEN not set - replies are logged only"}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request, engine: StepsEngine = Depends(get_steps_engine)):
    """
    Health check endpoint.
    Returns the status of the step store, the chat bot and the engine metrics.
    """
    correlation_id = request.headers.get("X-Request-ID", "N/A")

    storage_health = await check_storage_health(engine)
    bot_health = check_bot_health()
    metrics_health = get_metrics().get_health_metrics()

    services = {
        "storage": storage_health["status"],
        "telegram_bot": bot_health["status"],
        "metrics": metrics_health["status"],
        "api_gateway": "healthy"
    }

    # Determine overall status
    overall_status = "healthy"
    if any(status == "unhealthy" for status in services.values()):
        overall_status = "unhealthy"
    elif any(status == "degraded" for status in services.values()):
        overall_status = "degraded"

    logger.info(
        "Health check completed",
        extra={"request_id": correlation_id, "status": overall_status}
    )

    return {
        "status": overall_status,
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "services": services,
        "storage": storage_health,
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }


@router.get("/metrics", status_code=status.HTTP_200_OK)
async def get_metrics_endpoint():
    """
    Get step tracking metrics.
    Returns per-operation counts, failure rates and leaderboard usage per window.
    """
    metrics_data = get_metrics().get_metrics_summary()

    logger.info(json.dumps({
        "type": "metrics_request",
        "total_operations": metrics_data["overall"]["total_operations"],
        "failure_rate": metrics_data["last_hour"]["failure_rate_percent"],
        "timestamp": metrics_data["timestamp"]
    }))

    return metrics_data
