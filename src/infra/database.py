"""
Relational database connection with SQLAlchemy ORM
"""

from typing import Optional
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine

from src.infra.config.settings import get_settings
from src.infra.models import Base
from src.core.logger.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves foreign keys off per connection unless asked
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """SQLAlchemy async database manager"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def backend_name(self) -> str:
        return make_url(self.database_url).get_backend_name()

    def _engine_options(self) -> dict:
        options = {
            "echo": settings.DB_LOGGING_ENABLED,
            "pool_pre_ping": True,
        }
        # SQLite pools are file handles; sizing only applies to server databases
        if self.backend_name != "sqlite":
            options.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_recycle=3600
            )
        return options

    async def connect(self) -> AsyncEngine:
        """Initialize database engine, session factory and schema"""
        if self._engine is not None:
            return self._engine

        try:
            self._engine = create_async_engine(self.database_url, **self._engine_options())
            if self.backend_name == "sqlite":
                event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False
            )

            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                await conn.execute(text("SELECT 1"))

            logger.info(
                "Connected to database with SQLAlchemy successfully",
                extra={
                    "backend": self.backend_name,
                    "database": make_url(self.database_url).database
                }
            )

            return self._engine

        except Exception as e:
            logger.error(
                "Failed to connect to database",
                extra={
                    "backend": self.backend_name,
                    "error": str(e)
                }
            )
            self._engine = None
            self._session_factory = None
            raise

    async def close(self):
        """Close database engine"""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine closed")
            self._engine = None
            self._session_factory = None

    def get_session_factory(self) -> Optional[async_sessionmaker]:
        """Get the session factory"""
        return self._session_factory
