"""
Tests for trade validation, status derivation and external ids.
"""

import pytest
from datetime import datetime

from tradelog.core.config import StatusPolicy
from tradelog.core.exceptions import ValidationError
from tradelog.schemas.broker import AggregatedOrder
from tradelog.schemas.trade import ImportSource, TradeDirection
from tradelog.services.normalizer import TradeNormalizer


@pytest.mark.unit
class TestValidation:
    """Tests for the candidate boundary."""
    
    def test_aliases_and_coercion(self, normalizer, sample_trade_input):
        candidate = normalizer.validate(sample_trade_input)
        assert candidate.symbol == "AAPL"
        assert candidate.direction == TradeDirection.LONG
        assert candidate.entry_time == datetime(2025, 1, 15, 14, 30)
        assert candidate.quantity == 100
    
    def test_buy_sell_aliases(self, normalizer, sample_trade_input):
        sample_trade_input["type"] = "sell"
        assert normalizer.validate(sample_trade_input).direction == TradeDirection.SHORT
    
    def test_blank_optional_fields(self, normalizer, sample_trade_input):
        """Empty CSV cells count as absent; blank fees become 0."""
        sample_trade_input.update(exit_price="", exit_date="", fees="", strategy="")
        candidate = normalizer.validate(sample_trade_input)
        assert candidate.exit_price is None
        assert candidate.exit_time is None
        assert candidate.fees == 0.0
        assert candidate.strategy is None
    
    def test_timezone_converted_to_naive_utc(self, normalizer, sample_trade_input):
        sample_trade_input["entry_date"] = "2025-01-15T09:30:00-05:00"
        sample_trade_input["exit_date"] = "2025-01-15T15:00:00Z"
        candidate = normalizer.validate(sample_trade_input)
        assert candidate.entry_time == datetime(2025, 1, 15, 14, 30)
        assert candidate.exit_time == datetime(2025, 1, 15, 15, 0)
    
    def test_date_only(self, normalizer, sample_trade_input):
        sample_trade_input.update(entry_date="2025-01-15", exit_date="2025-01-16")
        assert normalizer.validate(sample_trade_input).entry_time == datetime(2025, 1, 15)
    
    @pytest.mark.parametrize("field,value", [
        ("symbol", ""),
        ("type", "SIDEWAYS"),
        ("entry_date", "not a date"),
        ("entry_price", "abc"),
        ("quantity", 0),
        ("quantity", 2.5),
        ("fees", -1),
    ])
    def test_invalid_values(self, normalizer, sample_trade_input, field, value):
        sample_trade_input[field] = value
        with pytest.raises(ValidationError):
            normalizer.validate(sample_trade_input, line=7)
    
    def test_missing_required_field_reports_line(self, normalizer, sample_trade_input):
        del sample_trade_input["entry_price"]
        with pytest.raises(ValidationError) as exc_info:
            normalizer.validate(sample_trade_input, line=3)
        assert exc_info.value.line == 3
        assert "entry_price" in exc_info.value.message
    
    def test_exit_before_entry_rejected(self, normalizer, sample_trade_input):
        sample_trade_input["exit_date"] = "2025-01-14T10:00:00"
        with pytest.raises(ValidationError):
            normalizer.validate(sample_trade_input)


@pytest.mark.unit
class TestStatusPolicy:
    """Tests for status and P&L derivation."""
    
    def test_gated_closed_with_exit_price(self, normalizer, sample_trade_input):
        fields = normalizer.normalize(sample_trade_input).fields
        assert fields["status"] == "CLOSED"
        assert fields["profit_loss"] == pytest.approx(497.5)
    
    def test_gated_open_without_exit_price(self, normalizer, sample_trade_input):
        sample_trade_input.pop("exit_price")
        fields = normalizer.normalize(sample_trade_input).fields
        assert fields["status"] == "OPEN"
        assert fields["profit_loss"] is None
        assert fields["profit_loss_percent"] is None
    
    def test_always_closed(self, sample_trade_input):
        normalizer = TradeNormalizer(status_policy=StatusPolicy.ALWAYS_CLOSED)
        sample_trade_input.pop("exit_price")
        fields = normalizer.normalize(sample_trade_input).fields
        assert fields["status"] == "CLOSED"
        assert fields["profit_loss"] is None
    
    def test_futures_multiplier_applied(self, normalizer):
        fields = normalizer.normalize({
            "symbol": "NQH5", "direction": "LONG", "entry_time": "2025-01-15T14:30:00",
            "entry_price": 15000, "exit_price": 15010, "quantity": 2, "fees": 5,
        }).fields
        assert fields["profit_loss"] == 395


@pytest.mark.unit
class TestExternalIds:
    """Tests for dedup key assignment."""
    
    def test_manual_has_no_external_id(self, normalizer, sample_trade_input):
        normalized = normalizer.normalize(sample_trade_input, ImportSource.MANUAL)
        assert normalized.external_id is None
        assert normalized.fields["external_source_id"] is None
    
    def test_csv_natural_key(self, normalizer, sample_trade_input):
        normalized = normalizer.normalize(sample_trade_input, ImportSource.CSV)
        assert normalized.external_id == "csv_AAPL_2025-01-15T14:30:00_150_100"
    
    def test_csv_key_ignores_exit_fields(self, normalizer, sample_trade_input):
        first = normalizer.normalize(sample_trade_input, ImportSource.CSV).external_id
        sample_trade_input["exit_price"] = 160.0
        assert normalizer.normalize(sample_trade_input, ImportSource.CSV).external_id == first
    
    def test_csv_key_stable_across_number_formats(self, normalizer, sample_trade_input):
        first = normalizer.normalize(sample_trade_input, ImportSource.CSV).external_id
        sample_trade_input.update(entry_price="150.00", quantity="100")
        assert normalizer.normalize(sample_trade_input, ImportSource.CSV).external_id == first
    
    def test_broker_requires_order_id(self, normalizer, sample_trade_input):
        with pytest.raises(ValidationError):
            normalizer.normalize(sample_trade_input, ImportSource.BROKER)
    
    def test_normalize_order(self, normalizer):
        order = AggregatedOrder(
            order_id="1001",
            contract_id="555",
            symbol="MNQH5",
            direction=TradeDirection.LONG,
            total_quantity=5,
            weighted_avg_price=104.0,
            total_fees=1.5,
            entry_time=datetime(2025, 1, 15, 14, 30),
            fill_count=2,
        )
        normalized = normalizer.normalize_order(order, line=1)
        assert normalized.external_id == "tradovate_1001"
        assert normalized.source == ImportSource.BROKER
        assert normalized.fields["status"] == "OPEN"
        assert normalized.fields["notes"] == "Imported from Tradovate - Order ID: 1001"
