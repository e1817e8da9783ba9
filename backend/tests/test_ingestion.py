"""
Tests for the ingestion pipeline against a real SQLite database.
"""

import pytest
from sqlalchemy import func, select

from tradelog.core.exceptions import DuplicateImportError, NotFoundError, ValidationError
from tradelog.db.models.trading import ImportRecord, Trade
from tradelog.db.repositories.imports import ImportLedger
from tradelog.schemas.trade import ImportSource


async def _count(session_factory, model):
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


@pytest.mark.integration
class TestManualTrades:
    """Create, read, update and delete of single trades."""
    
    @pytest.mark.asyncio
    async def test_create_trade(self, ingestion, sample_trade_input):
        trade = await ingestion.create_trade(sample_trade_input)
        assert trade.id is not None
        assert trade.status == "CLOSED"
        assert trade.profit_loss == pytest.approx(497.5)
        assert trade.external_source_id is None
        assert trade.created_at is not None
    
    @pytest.mark.asyncio
    async def test_manual_entries_never_deduplicated(self, ingestion, session_factory, sample_trade_input):
        await ingestion.create_trade(sample_trade_input)
        await ingestion.create_trade(sample_trade_input)
        assert await _count(session_factory, Trade) == 2
        assert await _count(session_factory, ImportRecord) == 0
    
    @pytest.mark.asyncio
    async def test_invalid_trade_not_persisted(self, ingestion, session_factory, sample_trade_input):
        sample_trade_input["quantity"] = -3
        with pytest.raises(ValidationError):
            await ingestion.create_trade(sample_trade_input)
        assert await _count(session_factory, Trade) == 0
    
    @pytest.mark.asyncio
    async def test_screenshot_url_kept_and_replaced(self, ingestion, sample_trade_input):
        sample_trade_input["screenshot_url"] = "https://charts.example.com/aapl-1.png"
        trade = await ingestion.create_trade(sample_trade_input)
        assert trade.screenshot_url == "https://charts.example.com/aapl-1.png"
        
        update = dict(sample_trade_input, screenshot_url="https://charts.example.com/aapl-2.png")
        updated = await ingestion.update_trade(trade.id, update)
        assert updated.screenshot_url == "https://charts.example.com/aapl-2.png"
        
        cleared = await ingestion.update_trade(trade.id, dict(sample_trade_input, screenshot_url=None))
        assert cleared.screenshot_url is None
    
    @pytest.mark.asyncio
    async def test_screenshot_url_too_long(self, ingestion, session_factory, sample_trade_input):
        sample_trade_input["screenshot_url"] = "https://x.example.com/" + "a" * 500
        with pytest.raises(ValidationError):
            await ingestion.create_trade(sample_trade_input)
        assert await _count(session_factory, Trade) == 0
    
    @pytest.mark.asyncio
    async def test_list_filters_and_order(self, ingestion, sample_trade_input):
        first = await ingestion.create_trade(sample_trade_input)
        open_input = dict(sample_trade_input, symbol="MSFT", entry_date="2025-02-01T10:00:00")
        open_input.pop("exit_price")
        open_input.pop("exit_date")
        second = await ingestion.create_trade(open_input)
        
        trades = await ingestion.list_trades()
        assert [trade.id for trade in trades] == [second.id, first.id]
        assert [trade.id for trade in await ingestion.list_trades(status="open")] == [second.id]
        assert [trade.id for trade in await ingestion.list_trades(symbol="aapl")] == [first.id]
    
    @pytest.mark.asyncio
    async def test_update_rederives_status(self, ingestion, sample_trade_input):
        """Clearing the exit price reopens the trade and clears P&L."""
        trade = await ingestion.create_trade(sample_trade_input)
        reopened = dict(sample_trade_input, exit_price=None, exit_date=None)
        
        updated = await ingestion.update_trade(trade.id, reopened)
        assert updated.status == "OPEN"
        assert updated.profit_loss is None
        assert updated.exit_price is None
        
        closed = await ingestion.update_trade(trade.id, dict(sample_trade_input, exit_price=160.0))
        assert closed.status == "CLOSED"
        assert closed.profit_loss == pytest.approx(997.5)
    
    @pytest.mark.asyncio
    async def test_update_unknown_trade(self, ingestion, sample_trade_input):
        with pytest.raises(NotFoundError):
            await ingestion.update_trade(999, sample_trade_input)
    
    @pytest.mark.asyncio
    async def test_get_and_delete(self, ingestion, sample_trade_input):
        trade = await ingestion.create_trade(sample_trade_input)
        assert (await ingestion.get_trade(trade.id)).symbol == "AAPL"
        
        await ingestion.delete_trade(trade.id)
        with pytest.raises(NotFoundError):
            await ingestion.get_trade(trade.id)
        with pytest.raises(NotFoundError):
            await ingestion.delete_trade(trade.id)


@pytest.mark.integration
class TestImportDedup:
    """At-most-once import through the ledger."""
    
    @pytest.mark.asyncio
    async def test_second_import_is_duplicate(self, ingestion, normalizer, session_factory, sample_trade_input):
        normalized = normalizer.normalize(sample_trade_input, ImportSource.CSV)
        trade = await ingestion.import_normalized(normalized)
        
        with pytest.raises(DuplicateImportError):
            await ingestion.import_normalized(normalized)
        
        assert await _count(session_factory, Trade) == 1
        async with session_factory() as session:
            record = await ImportLedger(session).get_by_external_id(normalized.external_id)
        assert record.trade_id == trade.id
        assert record.source == "csv"
    
    @pytest.mark.asyncio
    async def test_ledger_conflict_rolls_back_trade(
        self, ingestion, normalizer, session_factory, sample_trade_input, monkeypatch
    ):
        """A uniqueness conflict after the pre-check leaves no orphan trade."""
        normalized = normalizer.normalize(sample_trade_input, ImportSource.CSV)
        async with session_factory() as session:
            async with session.begin():
                await ImportLedger(session).record(normalized.external_id, "csv", None)
        
        async def missing(self, external_id):
            return False
        
        monkeypatch.setattr(ImportLedger, "exists", missing)
        with pytest.raises(DuplicateImportError):
            await ingestion.import_normalized(normalized)
        
        assert await _count(session_factory, Trade) == 0
        assert await _count(session_factory, ImportRecord) == 1
    
    @pytest.mark.asyncio
    async def test_import_rows_counts(self, ingestion, session_factory, sample_trade_input):
        bad = dict(sample_trade_input, quantity="lots")
        other = dict(sample_trade_input, symbol="MSFT")
        rows = [(2, sample_trade_input), (3, bad), (4, sample_trade_input), (5, other)]
        
        result = await ingestion.import_rows(rows, ImportSource.CSV)
        
        assert result.inserted_count == 2
        assert result.skipped_count == 1
        assert [error.line for error in result.row_errors] == [3]
        assert result.total == 4
        assert await _count(session_factory, Trade) == 2
    
    @pytest.mark.asyncio
    async def test_deleted_trade_stays_blocked(self, ingestion, normalizer, session_factory, sample_trade_input):
        """The ledger entry outlives its trade until explicitly removed."""
        normalized = normalizer.normalize(sample_trade_input, ImportSource.CSV)
        trade = await ingestion.import_normalized(normalized)
        await ingestion.delete_trade(trade.id)
        
        async with session_factory() as session:
            record = await ImportLedger(session).get_by_external_id(normalized.external_id)
        assert record is not None
        assert record.trade_id is None
        
        with pytest.raises(DuplicateImportError):
            await ingestion.import_normalized(normalized)
        
        assert await ingestion.forget_import(normalized.external_id) is True
        reimported = await ingestion.import_normalized(normalized)
        assert reimported.id is not None
    
    @pytest.mark.asyncio
    async def test_manual_source_cannot_use_import_path(self, ingestion, normalizer, sample_trade_input):
        normalized = normalizer.normalize(sample_trade_input, ImportSource.MANUAL)
        with pytest.raises(ValidationError):
            await ingestion.import_normalized(normalized)
