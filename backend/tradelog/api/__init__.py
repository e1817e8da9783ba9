"""API router initialization"""
from fastapi import APIRouter

from tradelog.api.routes import analytics, broker, imports, stats, tags, trades

api_router = APIRouter()

api_router.include_router(trades.router, prefix="/trades", tags=["trades"])
api_router.include_router(imports.router, prefix="/import", tags=["import"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
api_router.include_router(broker.router, prefix="/broker", tags=["broker"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
