"""
Step store backed by Redis hashes
"""

from datetime import date, datetime
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

import redis.asyncio as redis
from redis.exceptions import WatchError

from src.core.exceptions.base import StorageUnavailableError
from src.core.service.steps import windows
from src.core.service.steps.models import DailyEntry
from src.infra.repository.base import StepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RedisStepStore(StepStore):
    """
    Redis store for registered users and their daily entries.

    Layout:
        <prefix>:users              hash  user_id -> registration ISO timestamp
        <prefix>:entries:<user_id>  hash  YYYY-MM-DD -> steps

    The upsert is a WATCH/MULTI transaction: HSET only runs while the user is
    still in the users hash.
    """

    name = "redis"

    def __init__(self, redis_client: redis.Redis, key_prefix: str = "steps"):
        self.redis = redis_client
        self.key_prefix = key_prefix

    @property
    def _users_key(self) -> str:
        return f"{self.key_prefix}:users"

    def _entries_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:entries:{user_id}"

    async def _run(self, operation: str, call: Callable[[], Awaitable[T]], **context) -> T:
        try:
            return await call()
        except redis.RedisError as e:
            logger.error(
                f"Redis operation failed: {operation}",
                extra={**context, "error": str(e)}
            )
            raise StorageUnavailableError(
                "Step storage is unavailable", operation=operation, context=context
            ) from e

    async def close(self) -> None:
        await self.redis.aclose()

    async def add_user(self, user_id: str, registered_at: datetime) -> bool:
        created = await self._run(
            "add_user",
            lambda: self.redis.hsetnx(self._users_key, user_id, registered_at.isoformat()),
            user_id=user_id
        )
        if created:
            logger.info("New user registered in Redis", extra={"user_id": user_id})
        return bool(created)

    async def has_user(self, user_id: str) -> bool:
        exists = await self._run(
            "has_user", lambda: self.redis.hexists(self._users_key, user_id), user_id=user_id
        )
        return bool(exists)

    async def remove_user(self, user_id: str) -> bool:
        async def _remove():
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hdel(self._users_key, user_id)
                pipe.delete(self._entries_key(user_id))
                removed, _ = await pipe.execute()
            return removed

        removed = await self._run("remove_user", _remove, user_id=user_id)
        return bool(removed)

    async def list_users(self) -> List[str]:
        users = await self._run("list_users", lambda: self.redis.hkeys(self._users_key))
        return sorted(users)

    async def _hset_if_registered(self, user_id: str, day_key: str, steps: int) -> bool:
        # WATCH on the users hash aborts the MULTI if a delete lands between check and write
        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(self._users_key)
                    if not await pipe.hexists(self._users_key, user_id):
                        await pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.hset(self._entries_key(user_id), day_key, steps)
                    await pipe.execute()
                    return True
                except WatchError:
                    logger.debug("Users hash changed during upsert, retrying", extra={"user_id": user_id})
                    continue

    async def upsert_entry(self, user_id: str, day: date, steps: int) -> bool:
        key = windows.day_key(day)
        return await self._run(
            "upsert_entry",
            lambda: self._hset_if_registered(user_id, key, steps),
            user_id=user_id,
            day=key
        )

    async def _raw_entries(self, user_id: str) -> Dict[date, int]:
        raw = await self._run(
            "get_entries", lambda: self.redis.hgetall(self._entries_key(user_id)), user_id=user_id
        )
        return {windows.to_day(day): int(steps) for day, steps in raw.items()}

    async def get_entries(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyEntry]:
        entries = await self._raw_entries(user_id)
        return [
            DailyEntry(user_id=user_id, day=day, steps=steps)
            for day, steps in sorted(entries.items())
            if (start is None or day >= start) and (end is None or day <= end)
        ]

    async def window_totals(self, start: date, end: date) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for user_id in await self.list_users():
            in_range = [
                steps for day, steps in (await self._raw_entries(user_id)).items()
                if start <= day <= end
            ]
            if in_range:
                totals[user_id] = sum(in_range)
        return totals
