"""
Database Session Management
TradeLog Trading Journal

Provides async database connection with:
- SQLite (aiosqlite) or PostgreSQL (asyncpg) engines
- Session factories handed to the services
- Health check capabilities
"""

from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tradelog.core.config import settings


def build_engine(url: Optional[str] = None, **overrides: Any) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    url = url or settings.DATABASE_URL
    options: Dict[str, Any] = {"echo": settings.db.echo, "future": True}
    if not url.startswith("sqlite"):
        db = settings.db
        options.update(
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=True,
        )
    options.update(overrides)
    return create_async_engine(url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()

AsyncSessionLocal = build_session_factory(engine)



async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """
    Initialize database tables.
    
    Note: In production, use Alembic migrations instead.
    """
    from tradelog.db.base import Base
    # Import models module to register all models with Base
    from tradelog.db import models  # noqa: F401
    
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def health_check(session_factory: Optional[async_sessionmaker] = None) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with (session_factory or AsyncSessionLocal)() as session:
            await session.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False
