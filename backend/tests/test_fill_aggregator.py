"""
Tests for grouping broker fills into orders.
"""

import pytest
from datetime import datetime

from tradelog.core.exceptions import ContractLookupError, UpstreamUnavailableError, ValidationError
from tradelog.schemas.broker import Fill
from tradelog.schemas.trade import TradeDirection
from tradelog.services.fill_aggregator import aggregate_fills, group_fills, summarize_order


def _fill(order_id, quantity, price, minute=0, contract_id="555", action="Buy", commission=0.0):
    return Fill(
        order_id=order_id,
        contract_id=contract_id,
        quantity=quantity,
        price=price,
        timestamp=datetime(2025, 1, 15, 14, minute),
        action=action,
        commission=commission,
    )


@pytest.mark.unit
class TestSummarizeOrder:
    """Tests for collapsing one order's fills."""
    
    def test_weighted_average_price(self):
        """3@100 and 2@110 give 5 contracts at 104."""
        order = summarize_order("1", [_fill("1", 3, 100), _fill("1", 2, 110)], "NQH5")
        assert order.total_quantity == 5
        assert order.weighted_avg_price == pytest.approx(104.0)
    
    def test_fees_summed_and_earliest_time(self):
        fills = [
            _fill("1", 1, 100, minute=30, commission=1.0),
            _fill("1", 1, 100, minute=10, commission=0.5),
        ]
        order = summarize_order("1", fills, "NQH5")
        assert order.total_fees == pytest.approx(1.5)
        assert order.entry_time == datetime(2025, 1, 15, 14, 10)
        assert order.fill_count == 2
    
    def test_direction_from_first_fill(self):
        order = summarize_order("1", [_fill("1", 1, 100, action="Sell")], "NQH5")
        assert order.direction == TradeDirection.SHORT
    
    def test_signed_quantity_without_action(self):
        """Without an action, a negative quantity is a sell."""
        order = summarize_order("1", [_fill("1", -2, 100, action=None)], "NQH5")
        assert order.direction == TradeDirection.SHORT
        assert order.total_quantity == 2
    
    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            summarize_order("1", [_fill("1", 0, 100)], "NQH5")
    
    def test_empty_group_rejected(self):
        with pytest.raises(ValidationError):
            summarize_order("1", [], "NQH5")


@pytest.mark.unit
class TestAggregateFills:
    """Tests for aggregate_fills."""
    
    def test_group_order_preserved(self):
        groups = group_fills([_fill("b", 1, 1), _fill("a", 1, 1), _fill("b", 1, 1)])
        assert list(groups) == ["b", "a"]
        assert len(groups["b"]) == 2
    
    @pytest.mark.asyncio
    async def test_lookup_cached_per_contract(self):
        calls = []
        
        async def lookup(contract_id):
            calls.append(contract_id)
            return "MNQH5"
        
        result = await aggregate_fills([_fill("1", 1, 100), _fill("2", 1, 101)], lookup)
        assert [order.symbol for order in result.orders] == ["MNQH5", "MNQH5"]
        assert calls == ["555"]
    
    @pytest.mark.asyncio
    async def test_failed_lookup_skips_only_that_order(self):
        async def lookup(contract_id):
            if contract_id == "bad":
                raise ContractLookupError(contract_id, "unknown")
            return "ESH5"
        
        fills = [_fill("1", 1, 100, contract_id="bad"), _fill("2", 1, 100)]
        result = await aggregate_fills(fills, lookup)
        
        assert [order.order_id for order in result.orders] == ["2"]
        assert len(result.failures) == 1
        assert result.failures[0].order_id == "1"
    
    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self):
        async def lookup(contract_id):
            raise UpstreamUnavailableError("down")
        
        with pytest.raises(UpstreamUnavailableError):
            await aggregate_fills([_fill("1", 1, 100)], lookup)
