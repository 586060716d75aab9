"""
Shared fixtures: every step store backend and an engine bound to each.
"""

import pytest
import pytest_asyncio
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from src.api.utils.metrics import StepMetrics
from src.core.service.steps.engine import StepsEngine
from src.infra.database import DatabaseManager
from src.infra.repository.memory_step_repository import MemoryStepStore
from src.infra.repository.redis_step_repository import RedisStepStore
from src.infra.repository.sql_step_repository import SqlStepStore

async def build_store(backend: str, tmp_path):
    if backend == "memory":
        store = MemoryStepStore()
    elif backend == "sql":
        store = SqlStepStore(DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'steps.db'}"))
    else:
        store = RedisStepStore(FakeRedis(server=FakeServer(), decode_responses=True), key_prefix="test-steps")
    await store.connect()
    return store

@pytest_asyncio.fixture(params=["memory", "sql", "redis"])
async def store(request, tmp_path):
    """Connected step store, once per backend."""
    step_store = await build_store(request.param, tmp_path)
    try:
        yield step_store
    finally:
        await step_store.close()

@pytest.fixture
def metrics():
    return StepMetrics()

@pytest_asyncio.fixture
async def engine(store, metrics):
    """Engine over each backend with its own metrics collector."""
    return StepsEngine(store, metrics=metrics)

@pytest_asyncio.fixture
async def memory_engine(metrics):
    return StepsEngine(MemoryStepStore(), metrics=metrics)
