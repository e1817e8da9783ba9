"""
P&L Calculator

Pure profit/loss computation for one trade, aware of futures point values.
"""
from dataclasses import dataclass
from numbers import Integral
from typing import Optional, Union

from tradelog.core.exceptions import ValidationError
from tradelog.core.instruments import InstrumentResolver, default_resolver
from tradelog.schemas.trade import TradeDirection


@dataclass(frozen=True)
class ProfitLoss:
    profit_loss: float
    profit_loss_percent: Optional[float]


def compute_profit_loss(
    symbol: str,
    direction: Union[TradeDirection, str],
    entry_price: float,
    exit_price: float,
    quantity: int,
    fees: Optional[float] = 0.0,
    resolver: Optional[InstrumentResolver] = None,
) -> ProfitLoss:
    """
    Compute profit/loss and percent return.
    
    profit_loss = point_difference * quantity * multiplier - fees, where the
    point difference is exit - entry for LONG and entry - exit for SHORT.
    The percent return is measured against the notional entry value and is
    None when that notional is zero.
    
    Raises:
        ValidationError: quantity is not a positive integer, fees < 0 or the
            direction is not LONG/SHORT.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, Integral) or quantity <= 0:
        raise ValidationError(f"quantity must be a positive integer, got {quantity!r}", field="quantity")
    fees = float(fees or 0.0)
    if fees < 0:
        raise ValidationError(f"fees must not be negative, got {fees}", field="fees")
    
    try:
        direction = TradeDirection(direction)
    except ValueError as e:
        raise ValidationError(f"direction must be LONG or SHORT, got {direction!r}", field="direction") from e
    multiplier = (resolver or default_resolver).resolve(symbol)
    
    if direction == TradeDirection.LONG:
        point_difference = exit_price - entry_price
    else:
        point_difference = entry_price - exit_price
    
    profit_loss = point_difference * quantity * multiplier - fees
    
    notional = entry_price * quantity * multiplier
    profit_loss_percent = (profit_loss / notional) * 100 if notional else None
    
    return ProfitLoss(profit_loss=profit_loss, profit_loss_percent=profit_loss_percent)
