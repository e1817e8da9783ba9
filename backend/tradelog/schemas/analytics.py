"""
Analytics Schemas
Read-side views derived from the persisted trade set
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class OverallStats(BaseModel):
    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_profit_loss: float = 0.0
    avg_profit_loss: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    avg_return_percent: float = 0.0
    win_rate: float = Field(0.0, description="Percent, 0..100")


class GroupStats(BaseModel):
    """Per-symbol or per-strategy aggregate."""
    key: str
    trades_count: int
    wins: int
    losses: int
    total_pl: float
    avg_pl: float
    best_trade: float
    worst_trade: float
    win_rate: float


class BucketStats(BaseModel):
    """Aggregate over one time bucket (month, day, hour or weekday)."""
    bucket: str
    label: str
    trades_count: int
    wins: int
    losses: int
    total_pl: float
    win_rate: float


class TimeOfDayStats(BaseModel):
    by_hour: List[BucketStats] = Field(default_factory=list)
    by_day: List[BucketStats] = Field(default_factory=list)


class EquityPoint(BaseModel):
    trade_id: Optional[int] = None
    date: datetime
    symbol: str
    profit_loss: float
    cumulative_pl: float
    drawdown: float


class AdvancedMetrics(BaseModel):
    total_trades: int = 0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    net_profit: float = 0.0
    profit_factor: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    avg_rr_ratio: float = 0.0
    win_rate: float = Field(0.0, description="Percent, 0..100")
    expectancy: float = 0.0
    max_drawdown: float = 0.0


class HoldTimeBucket(BaseModel):
    range: str
    trades_count: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_pl: float = 0.0


class HoldTimeAnalysis(BaseModel):
    avg_hold_winners: float = 0.0
    avg_hold_losers: float = 0.0
    avg_hold_all: float = 0.0
    by_range: List[HoldTimeBucket] = Field(default_factory=list)


class AnalyticsSnapshot(BaseModel):
    """Every view computed over one consistent read of the trade set."""
    overall: OverallStats
    by_symbol: List[GroupStats]
    by_strategy: List[GroupStats]
    monthly: List[BucketStats]
    daily: List[BucketStats]
    time_of_day: TimeOfDayStats
    equity_curve: List[EquityPoint]
    advanced: AdvancedMetrics
    hold_time: HoldTimeAnalysis
