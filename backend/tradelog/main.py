"""
TradeLog Trading Journal - FastAPI Application
Main entry point with lifecycle management.

    HTTP routes
        ↓
    TradeIngestionService / CsvImportService / BrokerSyncService
        ↓
    TradeNormalizer → ImportLedger + TradeRepository
        ↓
    AnalyticsService (read side)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from tradelog.api import api_router
from tradelog.api.errors import register_exception_handlers
from tradelog.core.config import settings
from tradelog.core.logging import setup_logging
from tradelog.db import session as db_session
from tradelog.services.analytics_service import AnalyticsService
from tradelog.services.broker_sync import BrokerFactory, BrokerSyncService
from tradelog.services.csv_import import CsvImportService
from tradelog.services.ingestion import TradeIngestionService
from tradelog.services.normalizer import TradeNormalizer
from tradelog.services.tags import TagService


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.APP_VERSION}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Status policy: {app.state.ingestion.normalizer.status_policy.value}")
    logger.info("=" * 60)
    
    try:
        await db_session.init_db(app.state.engine)
        logger.info("✓ Database ready")
    except Exception as e:
        logger.error(f"✗ Database initialization error: {e}")
        raise
    
    yield
    
    logger.info("Shutting down...")
    await app.state.engine.dispose()
    logger.info("✓ Database connections closed")


# =============================================================================
# Application Factory
# =============================================================================

def create_application(
    engine: Optional[AsyncEngine] = None,
    broker_factory: Optional[BrokerFactory] = None,
    normalizer: Optional[TradeNormalizer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.
    
    Args:
        engine: Database engine (defaults to the configured DATABASE_URL)
        broker_factory: Builds a broker client for an environment name
        normalizer: Trade normalizer (defaults to the configured status policy)
    """
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.APP_VERSION,
        description="Trading journal: manual, CSV and broker trade ingestion with analytics",
        lifespan=lifespan,
    )
    
    engine = engine or db_session.engine
    session_factory = (
        db_session.AsyncSessionLocal if engine is db_session.engine
        else db_session.build_session_factory(engine)
    )
    
    ingestion = TradeIngestionService(session_factory, normalizer)
    application.state.engine = engine
    application.state.session_factory = session_factory
    application.state.ingestion = ingestion
    application.state.csv_import = CsvImportService(ingestion)
    application.state.analytics = AnalyticsService(session_factory)
    application.state.broker_sync = BrokerSyncService(session_factory, ingestion, broker_factory)
    application.state.tags = TagService(session_factory)
    
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    register_exception_handlers(application)
    application.include_router(api_router, prefix=settings.API_PREFIX)
    
    @application.get(f"{settings.API_PREFIX}/health")
    async def health():
        """Health check endpoint"""
        database_ok = await db_session.health_check(application.state.session_factory)
        return {
            "status": "ok" if database_ok else "degraded",
            "database": database_ok,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }
    
    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "tradelog.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.is_development,
    )
