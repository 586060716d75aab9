"""
Step store selection from settings
"""

from typing import Optional

from src.infra.config.redis import get_redis
from src.infra.config.settings import get_settings
from src.infra.database import DatabaseManager
from src.infra.repository.base import StepStore
from src.infra.repository.memory_step_repository import MemoryStepStore
from src.infra.repository.redis_step_repository import RedisStepStore
from src.infra.repository.sql_step_repository import SqlStepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

STORAGE_BACKENDS = ("sql", "memory", "redis")


async def create_step_store(backend: Optional[str] = None) -> StepStore:
    """
    Build and connect the step store configured by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = (backend or settings.STORAGE_BACKEND).lower()

    if backend == "sql":
        store = SqlStepStore(DatabaseManager(settings.DATABASE_URL))
    elif backend == "memory":
        store = MemoryStepStore()
    elif backend == "redis":
        store = RedisStepStore(await get_redis(settings.REDIS_URL), key_prefix=settings.REDIS_KEY_PREFIX)
    else:
        raise ValueError(
            f"Unsupported storage backend: {backend}. Supported: {', '.join(STORAGE_BACKENDS)}"
        )

    await store.connect()
    logger.info("Step store ready", extra={"backend": store.name})
    return store
