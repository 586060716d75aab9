"""
Step store backed by a relational database using SQLAlchemy ORM
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Dict, List, Optional, Tuple, Type

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions.base import StorageUnavailableError
from src.core.service.steps import windows
from src.core.service.steps.models import DailyEntry
from src.infra.database import DatabaseManager
from src.infra.models import UserModel, UserStepsModel
from src.infra.repository.base import StepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_DIALECTS = ("postgresql", "sqlite", "mysql")


class SqlStepStore(StepStore):
    """
    Durable step store: the user_steps table is the single source of truth.

    Every operation runs in its own transaction, so a failed write is rolled back
    before anyone can read it. Entries reference their user through an enforced
    foreign key, so an upsert for a user deleted mid-request writes nothing.
    """

    name = "sql"

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self._dialect: Optional[str] = None

    async def connect(self) -> None:
        engine = await self.db_manager.connect()
        dialect = engine.dialect.name
        if dialect not in SUPPORTED_DIALECTS:
            raise ValueError(
                f"Unsupported database dialect: {dialect}. Supported: {', '.join(SUPPORTED_DIALECTS)}"
            )
        self._dialect = dialect

    async def close(self) -> None:
        await self.db_manager.close()

    @asynccontextmanager
    async def _transaction(
        self,
        operation: str,
        passthrough: Tuple[Type[SQLAlchemyError], ...] = (),
        **context
    ) -> AsyncIterator[AsyncSession]:
        """
        One session and one transaction per operation. Errors listed in `passthrough`
        reach the caller as they are; every other SQLAlchemyError is reported as
        StorageUnavailableError.
        """
        session_factory = self.db_manager.get_session_factory()
        if session_factory is None:
            raise StorageUnavailableError("Database not connected", operation=operation, context=context)

        try:
            async with session_factory() as session:
                async with session.begin():
                    yield session
        except passthrough:
            raise
        except SQLAlchemyError as e:
            logger.error(
                f"Database operation failed: {operation}",
                extra={**context, "error": str(e)}
            )
            raise StorageUnavailableError(
                "Step storage is unavailable", operation=operation, context=context
            ) from e

    def _insert(self, model):
        if self._dialect == "postgresql":
            return postgresql.insert(model)
        if self._dialect == "mysql":
            return mysql.insert(model)
        return sqlite.insert(model)

    def _insert_user_statement(self, user_id: str, registered_at: datetime):
        stmt = self._insert(UserModel).values(user_id=user_id, registered_at=registered_at)
        if self._dialect == "mysql":
            return stmt.prefix_with("IGNORE")
        return stmt.on_conflict_do_nothing(index_elements=[UserModel.user_id])

    def _upsert_entry_statement(self, user_id: str, day: str, steps: int):
        stmt = self._insert(UserStepsModel).values(user_id=user_id, date=day, steps=steps)
        if self._dialect == "mysql":
            return stmt.on_duplicate_key_update(steps=stmt.inserted.steps)
        return stmt.on_conflict_do_update(
            index_elements=[UserStepsModel.user_id, UserStepsModel.date],
            set_={"steps": stmt.excluded.steps}
        )

    async def add_user(self, user_id: str, registered_at: datetime) -> bool:
        async with self._transaction("add_user", user_id=user_id) as session:
            result = await session.execute(self._insert_user_statement(user_id, registered_at))
            created = result.rowcount > 0

        if created:
            logger.info("New user created in database", extra={"user_id": user_id})
        return created

    async def has_user(self, user_id: str) -> bool:
        async with self._transaction("has_user", user_id=user_id) as session:
            result = await session.execute(
                select(UserModel.user_id).where(UserModel.user_id == user_id)
            )
            return result.scalar_one_or_none() is not None

    async def remove_user(self, user_id: str) -> bool:
        async with self._transaction("remove_user", user_id=user_id) as session:
            await session.execute(delete(UserStepsModel).where(UserStepsModel.user_id == user_id))
            result = await session.execute(delete(UserModel).where(UserModel.user_id == user_id))
            return result.rowcount > 0

    async def list_users(self) -> List[str]:
        async with self._transaction("list_users") as session:
            result = await session.execute(select(UserModel.user_id).order_by(UserModel.user_id))
            return list(result.scalars().all())

    async def upsert_entry(self, user_id: str, day: date, steps: int) -> bool:
        key = windows.day_key(day)
        try:
            async with self._transaction(
                "upsert_entry", passthrough=(IntegrityError,), user_id=user_id, day=key
            ) as session:
                await session.execute(self._upsert_entry_statement(user_id, key, steps))
        except IntegrityError:
            # user_steps.user_id references users; the user is gone
            logger.warning("Step entry rejected for unregistered user", extra={"user_id": user_id, "day": key})
            return False
        return True

    async def get_entries(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyEntry]:
        stmt = select(UserStepsModel.date, UserStepsModel.steps).where(UserStepsModel.user_id == user_id)
        if start is not None:
            stmt = stmt.where(UserStepsModel.date >= windows.day_key(start))
        if end is not None:
            stmt = stmt.where(UserStepsModel.date <= windows.day_key(end))
        stmt = stmt.order_by(UserStepsModel.date.asc())

        async with self._transaction("get_entries", user_id=user_id) as session:
            rows = (await session.execute(stmt)).all()

        return [
            DailyEntry(user_id=user_id, day=windows.to_day(row.date), steps=row.steps)
            for row in rows
        ]

    async def window_totals(self, start: date, end: date) -> Dict[str, int]:
        stmt = (
            select(UserStepsModel.user_id, func.sum(UserStepsModel.steps).label("sum_steps"))
            .where(
                UserStepsModel.date >= windows.day_key(start),
                UserStepsModel.date <= windows.day_key(end)
            )
            .group_by(UserStepsModel.user_id)
        )

        async with self._transaction("window_totals", start=str(start), end=str(end)) as session:
            rows = (await session.execute(stmt)).all()

        return {row.user_id: int(row.sum_steps or 0) for row in rows}
