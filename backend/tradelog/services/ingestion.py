"""
Trade Ingestion Service
TradeLog Trading Journal

Single-record create/update/delete and batch import. Every imported row is
one unit of work: the dedup check, the trade insert and the ledger insert
commit together or not at all. Rows are processed sequentially in input
order so skip counts and error line numbers are deterministic.
"""
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from tradelog.core.exceptions import DuplicateImportError, NotFoundError, ValidationError
from tradelog.db.models.trading import Trade
from tradelog.db.repositories.imports import ImportLedger
from tradelog.db.repositories.trading import TradeRepository
from tradelog.schemas.trade import ImportResult, ImportRowError, ImportSource
from tradelog.services.normalizer import NormalizedTrade, TradeNormalizer

# Columns a full-record update may rewrite; the dedup linkage is kept.
_UPDATABLE_FIELDS = (
    "symbol", "direction", "entry_time", "exit_time", "entry_price", "exit_price",
    "quantity", "fees", "stop_loss", "take_profit", "strategy", "notes", "screenshot_url",
    "status", "profit_loss", "profit_loss_percent",
)


class TradeIngestionService:
    """Writes trades through the normalizer and the dedup ledger."""
    
    def __init__(self, session_factory: async_sessionmaker, normalizer: Optional[TradeNormalizer] = None):
        self._session_factory = session_factory
        self.normalizer = normalizer or TradeNormalizer()
    
    # =========================================================================
    # Single Record
    # =========================================================================
    
    async def get_trade(self, trade_id: int) -> Trade:
        async with self._session_factory() as session:
            trade = await TradeRepository(session).get(trade_id)
            if trade is None:
                raise NotFoundError("Trade", trade_id)
            return trade
    
    async def list_trades(self, status: Optional[str] = None, symbol: Optional[str] = None) -> List[Trade]:
        async with self._session_factory() as session:
            return await TradeRepository(session).list_trades(status=status, symbol=symbol)
    
    async def create_trade(self, raw: Mapping[str, Any]) -> Trade:
        """Create a manually entered trade. Never deduplicated."""
        normalized = self.normalizer.normalize(raw, ImportSource.MANUAL)
        async with self._session_factory() as session:
            async with session.begin():
                trade = await TradeRepository(session).create(normalized.fields)
            await session.refresh(trade)
        logger.info(f"Created trade {trade.id} {trade.symbol} ({trade.status})")
        return trade
    
    async def update_trade(self, trade_id: int, raw: Mapping[str, Any]) -> Trade:
        """
        Replace a trade's fields with a full record.
        
        Status and P&L are re-derived from the new values, so clearing the
        exit price reopens the trade under the exit-price-gated policy.
        """
        normalized = self.normalizer.normalize(raw, ImportSource.MANUAL)
        async with self._session_factory() as session:
            async with session.begin():
                repo = TradeRepository(session)
                trade = await repo.get(trade_id)
                if trade is None:
                    raise NotFoundError("Trade", trade_id)
                values = {key: normalized.fields[key] for key in _UPDATABLE_FIELDS}
                trade = await repo.update(trade, values)
            await session.refresh(trade)
        logger.info(f"Updated trade {trade_id} ({trade.status})")
        return trade
    
    async def delete_trade(self, trade_id: int) -> None:
        """
        Delete a trade.
        
        Its ledger entry survives with no trade attached, so the same
        external id stays blocked until ImportLedger.remove is called.
        """
        async with self._session_factory() as session:
            async with session.begin():
                repo = TradeRepository(session)
                trade = await repo.get(trade_id)
                if trade is None:
                    raise NotFoundError("Trade", trade_id)
                await ImportLedger(session).unlink_trade(trade_id)
                await repo.delete(trade)
        logger.info(f"Deleted trade {trade_id}")
    
    async def forget_import(self, external_id: str) -> bool:
        """Remove a ledger entry so the external id can be imported again."""
        async with self._session_factory() as session:
            async with session.begin():
                return await ImportLedger(session).remove(external_id)
    
    # =========================================================================
    # Batch Import
    # =========================================================================
    
    async def import_normalized(self, normalized: NormalizedTrade) -> Trade:
        """
        Persist one imported trade and its ledger entry atomically.
        
        Raises:
            DuplicateImportError: the external id is already in the ledger,
                either before the insert or via the uniqueness constraint.
        """
        if not normalized.external_id:
            raise ValidationError("Imported trades require an external id", field="external_id")
        
        async with self._session_factory() as session:
            async with session.begin():
                ledger = ImportLedger(session)
                if await ledger.exists(normalized.external_id):
                    raise DuplicateImportError(normalized.external_id)
                trade = await TradeRepository(session).create(normalized.fields)
                await ledger.record(normalized.external_id, normalized.source.value, trade.id)
        return trade
    
    async def import_rows(
        self,
        rows: Iterable[Tuple[int, Mapping[str, Any]]],
        source: ImportSource,
    ) -> ImportResult:
        """
        Import numbered raw rows in order.
        
        A row that fails validation is reported and the batch continues;
        a duplicate is counted as skipped.
        """
        result = ImportResult()
        for line, raw in rows:
            try:
                normalized = self.normalizer.normalize(raw, source, line=line)
            except ValidationError as e:
                logger.warning(f"Row {line} rejected: {e.message}")
                result.row_errors.append(ImportRowError(line=line, message=e.message))
                continue
            await self._import_one(normalized, result, line)
        
        logger.info(
            f"{source.value} import finished: {result.inserted_count} imported, "
            f"{result.skipped_count} skipped, {len(result.row_errors)} errors"
        )
        return result
    
    async def import_batch(
        self,
        items: Iterable[Tuple[int, NormalizedTrade]],
        result: Optional[ImportResult] = None,
    ) -> ImportResult:
        """Import already-normalized trades, numbered by position."""
        result = result if result is not None else ImportResult()
        for line, normalized in items:
            await self._import_one(normalized, result, line)
        return result
    
    async def _import_one(self, normalized: NormalizedTrade, result: ImportResult, line: int) -> None:
        try:
            await self.import_normalized(normalized)
            result.inserted_count += 1
        except DuplicateImportError:
            logger.debug(f"Row {line} skipped, already imported: {normalized.external_id}")
            result.skipped_count += 1
