import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.future import select
from sqlalchemy.orm import declarative_base

Base = declarative_base()
logger = logging.getLogger("Herald.Model")


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Model:
    """Database access shared by the queue, notification and user tables."""

    # This will be set by the application bootstrap
    _engine = None
    _session_factory = None
    _is_enabled = False

    @classmethod
    def configure(cls, connection_string: str):
        """Configure the database connection."""
        cls._engine = create_async_engine(connection_string)
        cls._session_factory = async_sessionmaker(
            cls._engine, expire_on_commit=False, class_=AsyncSession
        )
        cls._is_enabled = True
        logger.info("Database connection configured")

    @classmethod
    async def cleanup(cls):
        """Cleanup database connections and close the engine."""
        if cls._engine is not None:
            await cls._engine.dispose()
            cls._engine = None
            cls._session_factory = None
            cls._is_enabled = False
            logger.info("Database connections closed")

    @classmethod
    async def get_session(cls) -> Optional[AsyncSession]:
        """Get a new session for database operations."""
        if not cls._is_enabled:
            logger.warning("Database operations attempted while the database is disabled")
            return None

        if cls._session_factory is None:
            raise RuntimeError("Database not configured. Call Model.configure() first.")
        return cls._session_factory()

    @classmethod
    async def create_tables(cls):
        """Create all tables defined in models."""
        if not cls._is_enabled:
            logger.info("Skipping table creation as the database is disabled")
            return

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created")

    @classmethod
    async def find(cls, model_class, id_value):
        """Find a record by ID."""
        if not cls._is_enabled:
            logger.warning(f"Find operation on {model_class.__name__} skipped - database disabled")
            return None

        async with await cls.get_session() as session:
            result = await session.execute(
                select(model_class).where(model_class.id == id_value)
            )
            return result.scalars().first()
