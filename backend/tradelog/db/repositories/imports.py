"""
Import Ledger
TradeLog Trading Journal

External id -> trade id mapping that enforces at-most-once import.
Uniqueness is enforced by the import_records.external_id constraint; the
``exists`` pre-check only avoids a wasted trade insert.
"""

from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.core.exceptions import DuplicateImportError
from tradelog.db.repository import BaseRepository
from tradelog.db.models.trading import ImportRecord


class ImportLedger(BaseRepository[ImportRecord]):
    """Repository for the dedup ledger."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(ImportRecord, session)
    
    async def exists(self, external_id: str) -> bool:
        result = await self.session.execute(
            select(self.model.id).where(self.model.external_id == external_id)
        )
        return result.first() is not None
    
    async def get_by_external_id(self, external_id: str) -> Optional[ImportRecord]:
        return await self.get_by_field("external_id", external_id)
    
    async def record(self, external_id: str, source: str, trade_id: int) -> ImportRecord:
        """
        Insert a ledger entry inside the caller's transaction.
        
        Raises:
            DuplicateImportError: another import already holds the external id.
                The caller's transaction must be rolled back.
        """
        entry = ImportRecord(external_id=external_id, source=source, trade_id=trade_id)
        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateImportError(external_id) from e
        return entry
    
    async def remove(self, external_id: str) -> bool:
        """Forget an external id so it can be imported again."""
        result = await self.session.execute(
            delete(self.model).where(self.model.external_id == external_id)
        )
        return result.rowcount > 0
    
    async def unlink_trade(self, trade_id: int) -> int:
        """Detach ledger entries from a trade that is being deleted."""
        result = await self.session.execute(
            update(self.model)
            .where(self.model.trade_id == trade_id)
            .values(trade_id=None)
        )
        return result.rowcount
