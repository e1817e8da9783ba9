from typing import List

from fastapi import APIRouter, Depends

from tradelog.api.deps import get_analytics
from tradelog.schemas.analytics import (
    AdvancedMetrics,
    AnalyticsSnapshot,
    BucketStats,
    EquityPoint,
    GroupStats,
    HoldTimeAnalysis,
    TimeOfDayStats,
)
from tradelog.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/daily", response_model=List[BucketStats])
async def get_daily(service: AnalyticsService = Depends(get_analytics)):
    return await service.daily()


@router.get("/equity-curve", response_model=List[EquityPoint])
async def get_equity_curve(service: AnalyticsService = Depends(get_analytics)):
    """Cumulative P&L per closed trade with running drawdown"""
    return await service.equity_curve()


@router.get("/time", response_model=TimeOfDayStats)
async def get_time_analysis(service: AnalyticsService = Depends(get_analytics)):
    return await service.time_of_day()


@router.get("/strategies", response_model=List[GroupStats])
async def get_strategies(service: AnalyticsService = Depends(get_analytics)):
    return await service.by_strategy()


@router.get("/advanced-metrics", response_model=AdvancedMetrics)
async def get_advanced_metrics(service: AnalyticsService = Depends(get_analytics)):
    return await service.advanced_metrics()


@router.get("/hold-time", response_model=HoldTimeAnalysis)
async def get_hold_time(service: AnalyticsService = Depends(get_analytics)):
    return await service.hold_time()


@router.get("/snapshot", response_model=AnalyticsSnapshot)
async def get_snapshot(service: AnalyticsService = Depends(get_analytics)):
    """Every view computed from one read of the journal"""
    return await service.snapshot()
