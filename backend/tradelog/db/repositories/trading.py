"""
Trading Repository
TradeLog Trading Journal

Data access layer for trades.
"""

from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.db.repository import BaseRepository
from tradelog.db.models.trading import Trade


class TradeRepository(BaseRepository[Trade]):
    """Repository for trades."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Trade, session)
    
    async def list_trades(
        self,
        status: Optional[str] = None,
        symbol: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Trade]:
        """Trades newest first, optionally filtered by status and symbol."""
        conditions = []
        if status:
            conditions.append(self.model.status == status.upper())
        if symbol:
            conditions.append(self.model.symbol == symbol.upper())
        
        query = select(self.model)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(self.model.entry_time.desc(), self.model.id.desc())
        if limit is not None:
            query = query.limit(limit)
        
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def list_for_analytics(self) -> List[Trade]:
        """All trades in chronological order, ties broken by id."""
        result = await self.session.execute(
            select(self.model).order_by(self.model.entry_time.asc(), self.model.id.asc())
        )
        return list(result.scalars().all())
