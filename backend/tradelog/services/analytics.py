"""
Analytics Engine
TradeLog Trading Journal

Pure read-side views over a trade collection. Every view takes the trades
as loaded (any object with the Trade columns as attributes) and returns
pydantic models; nothing here touches the database.

Most views work on realized trades, the ones with a profit_loss. Ratios
with a zero denominator resolve to 0 so an empty journal never yields
NaN or infinity.
"""
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tradelog.core.config import settings
from tradelog.schemas.analytics import (
    AdvancedMetrics,
    AnalyticsSnapshot,
    BucketStats,
    EquityPoint,
    GroupStats,
    HoldTimeAnalysis,
    HoldTimeBucket,
    OverallStats,
    TimeOfDayStats,
)
from tradelog.schemas.trade import TradeStatus

# Sunday-first, matching the journal UI
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# (lower hours inclusive, upper hours exclusive, label)
HOLD_TIME_BUCKETS: Tuple[Tuple[float, Optional[float], str], ...] = (
    (0, 1, "< 1 hour"),
    (1, 4, "1-4 hours"),
    (4, 8, "4-8 hours"),
    (8, 24, "8-24 hours"),
    (24, 72, "1-3 days"),
    (72, 168, "3-7 days"),
    (168, None, "7+ days"),
)


def safe_div(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _round(value: Optional[float]) -> float:
    return round(value or 0.0, 2)


def realized(trades: Iterable[Any]) -> List[Any]:
    """Trades that carry a profit_loss."""
    return [trade for trade in trades if trade.profit_loss is not None]


def _status(trade: Any) -> str:
    status = trade.status
    return status.value if isinstance(status, TradeStatus) else str(status)


def _wins_losses(trades: Sequence[Any]) -> Tuple[int, int]:
    wins = sum(1 for trade in trades if trade.profit_loss > 0)
    losses = sum(1 for trade in trades if trade.profit_loss < 0)
    return wins, losses


# =============================================================================
# Overall
# =============================================================================

def overall_stats(trades: Sequence[Any]) -> OverallStats:
    """Journal-wide counts and P&L totals."""
    closed_count = sum(1 for trade in trades if _status(trade) == TradeStatus.CLOSED.value)
    open_count = sum(1 for trade in trades if _status(trade) == TradeStatus.OPEN.value)
    done = realized(trades)
    wins, losses = _wins_losses(done)
    values = [trade.profit_loss for trade in done]
    percents = [trade.profit_loss_percent for trade in done if trade.profit_loss_percent is not None]

    return OverallStats(
        total_trades=len(trades),
        open_trades=open_count,
        closed_trades=closed_count,
        winning_trades=wins,
        losing_trades=losses,
        total_profit_loss=_round(sum(values)),
        avg_profit_loss=_round(safe_div(sum(values), len(values))),
        best_trade=_round(max(values) if values else 0.0),
        worst_trade=_round(min(values) if values else 0.0),
        avg_return_percent=_round(safe_div(sum(percents), len(percents))),
        win_rate=_round(safe_div(wins, closed_count) * 100),
    )


# =============================================================================
# Grouped Views
# =============================================================================

def group_stats(trades: Sequence[Any], key: Callable[[Any], str]) -> List[GroupStats]:
    """Aggregate realized trades per key, highest total P&L first."""
    groups: Dict[str, List[Any]] = OrderedDict()
    for trade in realized(trades):
        groups.setdefault(key(trade), []).append(trade)

    rows = []
    for name, members in groups.items():
        wins, losses = _wins_losses(members)
        values = [trade.profit_loss for trade in members]
        rows.append(GroupStats(
            key=name,
            trades_count=len(members),
            wins=wins,
            losses=losses,
            total_pl=_round(sum(values)),
            avg_pl=_round(safe_div(sum(values), len(values))),
            best_trade=_round(max(values)),
            worst_trade=_round(min(values)),
            win_rate=_round(safe_div(wins, len(members)) * 100),
        ))
    rows.sort(key=lambda row: row.total_pl, reverse=True)
    return rows


def by_symbol(trades: Sequence[Any]) -> List[GroupStats]:
    return group_stats(trades, lambda trade: trade.symbol)


def by_strategy(trades: Sequence[Any], default_label: Optional[str] = None) -> List[GroupStats]:
    label = default_label or settings.journal.default_strategy_label
    return group_stats(trades, lambda trade: trade.strategy or label)


def _bucket_stats(
    trades: Sequence[Any],
    bucket: Callable[[datetime], Any],
    label: Callable[[Any], str],
    descending: bool = False,
) -> List[BucketStats]:
    groups: Dict[Any, List[Any]] = {}
    for trade in realized(trades):
        groups.setdefault(bucket(trade.entry_time), []).append(trade)

    rows = []
    for key in sorted(groups, reverse=descending):
        members = groups[key]
        wins, losses = _wins_losses(members)
        rows.append(BucketStats(
            bucket=str(key),
            label=label(key),
            trades_count=len(members),
            wins=wins,
            losses=losses,
            total_pl=_round(sum(trade.profit_loss for trade in members)),
            win_rate=_round(safe_div(wins, len(members)) * 100),
        ))
    return rows


def monthly(trades: Sequence[Any]) -> List[BucketStats]:
    """Per calendar month, most recent first."""
    return _bucket_stats(trades, lambda ts: ts.strftime("%Y-%m"), str, descending=True)


def daily(trades: Sequence[Any]) -> List[BucketStats]:
    """Per calendar day, oldest first."""
    return _bucket_stats(trades, lambda ts: ts.strftime("%Y-%m-%d"), str)


def hourly(trades: Sequence[Any]) -> List[BucketStats]:
    """Per entry hour of day, labelled "HH:00"."""
    return _bucket_stats(trades, lambda ts: ts.hour, lambda hour: f"{hour:02d}:00")


def weekday(trades: Sequence[Any]) -> List[BucketStats]:
    """Per entry weekday, Sunday first."""
    # datetime.weekday() is Monday=0; shift so Sunday=0
    return _bucket_stats(
        trades,
        lambda ts: (ts.weekday() + 1) % 7,
        lambda index: WEEKDAY_NAMES[index],
    )


def time_of_day(trades: Sequence[Any]) -> TimeOfDayStats:
    return TimeOfDayStats(by_hour=hourly(trades), by_day=weekday(trades))


# =============================================================================
# Equity Curve & Drawdown
# =============================================================================

def _chronological(trades: Iterable[Any]) -> List[Any]:
    return sorted(realized(trades), key=lambda trade: (trade.entry_time, trade.id or 0))


def equity_curve(trades: Sequence[Any]) -> List[EquityPoint]:
    """
    One point per realized trade in entry order, ties broken by id.

    Each point carries the running P&L and the distance below the running
    peak at that point.
    """
    points = []
    cumulative = 0.0
    peak = 0.0
    for trade in _chronological(trades):
        cumulative += trade.profit_loss
        peak = max(peak, cumulative)
        points.append(EquityPoint(
            trade_id=trade.id,
            date=trade.entry_time,
            symbol=trade.symbol,
            profit_loss=_round(trade.profit_loss),
            cumulative_pl=_round(cumulative),
            drawdown=_round(peak - cumulative),
        ))
    return points


def max_drawdown(trades: Sequence[Any]) -> float:
    """Largest absolute fall from a running peak of cumulative P&L."""
    cumulative = 0.0
    peak = 0.0
    worst = 0.0
    for trade in _chronological(trades):
        cumulative += trade.profit_loss
        peak = max(peak, cumulative)
        worst = max(worst, peak - cumulative)
    return _round(worst)


# =============================================================================
# Advanced Metrics
# =============================================================================

def advanced_metrics(trades: Sequence[Any]) -> AdvancedMetrics:
    """
    Profit factor, average win/loss, reward/risk and expectancy.

    Expectancy uses the win rate as a 0..1 fraction; the reported win_rate
    is the usual 0..100 percentage.
    """
    done = realized(trades)
    winners = [trade.profit_loss for trade in done if trade.profit_loss > 0]
    losers = [abs(trade.profit_loss) for trade in done if trade.profit_loss < 0]

    gross_profit = sum(winners)
    gross_loss = sum(losers)
    avg_win = safe_div(gross_profit, len(winners))
    avg_loss = safe_div(gross_loss, len(losers))
    win_fraction = safe_div(len(winners), len(done))
    expectancy = win_fraction * avg_win - (1 - win_fraction) * avg_loss if done else 0.0

    return AdvancedMetrics(
        total_trades=len(done),
        gross_profit=_round(gross_profit),
        gross_loss=_round(gross_loss),
        net_profit=_round(gross_profit - gross_loss),
        profit_factor=_round(safe_div(gross_profit, gross_loss)),
        avg_win=_round(avg_win),
        avg_loss=_round(avg_loss),
        avg_rr_ratio=_round(safe_div(avg_win, avg_loss)),
        win_rate=_round(win_fraction * 100),
        expectancy=_round(expectancy),
        max_drawdown=max_drawdown(done),
    )


# =============================================================================
# Hold Time
# =============================================================================

def hold_hours(trade: Any) -> Optional[float]:
    if trade.entry_time is None or trade.exit_time is None:
        return None
    return (trade.exit_time - trade.entry_time).total_seconds() / 3600


def hold_time_bucket(hours: float) -> str:
    for lower, upper, label in HOLD_TIME_BUCKETS:
        if hours >= lower and (upper is None or hours < upper):
            return label
    # Negative holds are rejected at ingestion
    return HOLD_TIME_BUCKETS[0][2]


def hold_time_analysis(trades: Sequence[Any]) -> HoldTimeAnalysis:
    """Hold duration per outcome and per fixed duration bucket."""
    buckets = OrderedDict((label, []) for _, _, label in HOLD_TIME_BUCKETS)
    winners, losers, everyone = [], [], []

    for trade in realized(trades):
        hours = hold_hours(trade)
        if hours is None:
            continue
        everyone.append(hours)
        if trade.profit_loss > 0:
            winners.append(hours)
        elif trade.profit_loss < 0:
            losers.append(hours)
        buckets[hold_time_bucket(hours)].append(trade)

    by_range = []
    for label, members in buckets.items():
        wins, losses = _wins_losses(members)
        by_range.append(HoldTimeBucket(
            range=label,
            trades_count=len(members),
            wins=wins,
            losses=losses,
            win_rate=_round(safe_div(wins, len(members)) * 100),
            total_pl=_round(sum(trade.profit_loss for trade in members)),
        ))

    return HoldTimeAnalysis(
        avg_hold_winners=_round(safe_div(sum(winners), len(winners))),
        avg_hold_losers=_round(safe_div(sum(losers), len(losers))),
        avg_hold_all=_round(safe_div(sum(everyone), len(everyone))),
        by_range=by_range,
    )


# =============================================================================
# Snapshot
# =============================================================================

def build_snapshot(trades: Sequence[Any]) -> AnalyticsSnapshot:
    """Every view over the same trade list."""
    return AnalyticsSnapshot(
        overall=overall_stats(trades),
        by_symbol=by_symbol(trades),
        by_strategy=by_strategy(trades),
        monthly=monthly(trades),
        daily=daily(trades),
        time_of_day=time_of_day(trades),
        equity_curve=equity_curve(trades),
        advanced=advanced_metrics(trades),
        hold_time=hold_time_analysis(trades),
    )
