"""Database engine setup and pre-flight checks"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Import models to register them on SQLModel.metadata
from .model import StoredImage  # noqa: F401

logger = logging.getLogger(__name__)


def create_engine_and_factory(db_url: str) -> tuple[AsyncEngine, sessionmaker]:
    """Create the async engine (connection pool) and session factory

    Both the ingestion writer and the API reader use sessions from the same
    factory when they run in one process.

    Args:
        db_url: SQLAlchemy async database URL

    Returns:
        (engine, async_session_factory)
    """
    engine = create_async_engine(
        db_url,
        echo=False,
        future=True,
    )

    async_session_factory = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )

    return engine, async_session_factory


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables and indexes (idempotent)"""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema ensured")


async def run_preflight_checks(engine: AsyncEngine) -> None:
    """
    Run all database preflight checks before startup.

    Current checks:
    - Ensure the images table and its unique message_id index exist

    Args:
        engine: Async database engine
    """
    await create_tables(engine)
