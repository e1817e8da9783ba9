"""
Analytics Service
Loads the trade set once per call and hands it to the analytics engine.
"""
from typing import List

from sqlalchemy.ext.asyncio import async_sessionmaker

from tradelog.db.models.trading import Trade
from tradelog.db.repositories.trading import TradeRepository
from tradelog.schemas.analytics import (
    AdvancedMetrics,
    AnalyticsSnapshot,
    BucketStats,
    EquityPoint,
    GroupStats,
    HoldTimeAnalysis,
    OverallStats,
    TimeOfDayStats,
)
from tradelog.services import analytics


class AnalyticsService:
    """Read-only views over the persisted journal."""
    
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
    
    async def load_trades(self) -> List[Trade]:
        async with self._session_factory() as session:
            return await TradeRepository(session).list_for_analytics()
    
    async def overall(self) -> OverallStats:
        return analytics.overall_stats(await self.load_trades())
    
    async def by_symbol(self) -> List[GroupStats]:
        return analytics.by_symbol(await self.load_trades())
    
    async def by_strategy(self) -> List[GroupStats]:
        return analytics.by_strategy(await self.load_trades())
    
    async def monthly(self) -> List[BucketStats]:
        return analytics.monthly(await self.load_trades())
    
    async def daily(self) -> List[BucketStats]:
        return analytics.daily(await self.load_trades())
    
    async def time_of_day(self) -> TimeOfDayStats:
        return analytics.time_of_day(await self.load_trades())
    
    async def equity_curve(self) -> List[EquityPoint]:
        return analytics.equity_curve(await self.load_trades())
    
    async def advanced_metrics(self) -> AdvancedMetrics:
        return analytics.advanced_metrics(await self.load_trades())
    
    async def hold_time(self) -> HoldTimeAnalysis:
        return analytics.hold_time_analysis(await self.load_trades())
    
    async def snapshot(self) -> AnalyticsSnapshot:
        """All views over a single read."""
        return analytics.build_snapshot(await self.load_trades())
