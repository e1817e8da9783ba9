"""
Fill Aggregator

Groups raw broker executions into logical trades, one per broker order:
volume-weighted entry price, summed commissions, earliest fill time.

Opposing fills inside one order are not reconciled; the direction comes
from the first fill and partial closes are not split into separate trades.
"""
from collections import OrderedDict
from typing import Awaitable, Callable, Dict, Iterable, List

from loguru import logger

from tradelog.core.exceptions import ContractLookupError, ValidationError
from tradelog.schemas.broker import AggregatedOrder, AggregationFailure, AggregationResult, Fill
from tradelog.schemas.trade import TradeDirection

ContractLookup = Callable[[str], Awaitable[str]]


def group_fills(fills: Iterable[Fill]) -> "OrderedDict[str, List[Fill]]":
    """Group fills by order id, keeping first-seen order of the orders."""
    groups: "OrderedDict[str, List[Fill]]" = OrderedDict()
    for fill in fills:
        groups.setdefault(fill.order_id, []).append(fill)
    return groups


def summarize_order(order_id: str, fills: List[Fill], symbol: str) -> AggregatedOrder:
    """Collapse the fills of one order into a single aggregated order."""
    if not fills:
        raise ValidationError(f"Order {order_id} has no fills")
    
    total_quantity = sum(abs(fill.quantity) for fill in fills)
    if total_quantity <= 0:
        raise ValidationError(f"Order {order_id} has zero filled quantity")
    
    total_value = sum(abs(fill.quantity) * fill.price for fill in fills)
    total_fees = sum(fill.commission or 0.0 for fill in fills)
    first = fills[0]
    
    return AggregatedOrder(
        order_id=order_id,
        contract_id=first.contract_id,
        symbol=symbol,
        direction=TradeDirection.LONG if first.is_buy else TradeDirection.SHORT,
        total_quantity=int(round(total_quantity)),
        weighted_avg_price=total_value / total_quantity,
        total_fees=total_fees,
        entry_time=min(fill.timestamp for fill in fills),
        fill_count=len(fills),
    )


async def aggregate_fills(fills: Iterable[Fill], contract_lookup: ContractLookup) -> AggregationResult:
    """
    Aggregate fills into orders, resolving each order's symbol.
    
    A failed contract lookup or an unusable order group is recorded as a
    failure and the remaining groups are still processed. Broker-wide
    errors (authentication, network) propagate to the caller.
    """
    result = AggregationResult()
    symbols: Dict[str, str] = {}
    
    for order_id, order_fills in group_fills(fills).items():
        contract_id = order_fills[0].contract_id
        try:
            if contract_id not in symbols:
                symbols[contract_id] = await contract_lookup(contract_id)
            result.orders.append(summarize_order(order_id, order_fills, symbols[contract_id]))
        except (ContractLookupError, ValidationError) as e:
            logger.warning(f"Skipping order {order_id}: {e}")
            result.failures.append(AggregationFailure(
                order_id=order_id,
                contract_id=contract_id,
                message=str(e),
            ))
    
    return result
