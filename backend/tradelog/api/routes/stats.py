from typing import List

from fastapi import APIRouter, Depends

from tradelog.api.deps import get_analytics
from tradelog.schemas.analytics import BucketStats
from tradelog.services import analytics
from tradelog.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("")
async def get_stats(service: AnalyticsService = Depends(get_analytics)):
    """Overall statistics and per-symbol breakdown"""
    trades = await service.load_trades()
    return {
        "overall": analytics.overall_stats(trades),
        "by_symbol": analytics.by_symbol(trades),
    }


@router.get("/monthly", response_model=List[BucketStats])
async def get_monthly(service: AnalyticsService = Depends(get_analytics)):
    return await service.monthly()
