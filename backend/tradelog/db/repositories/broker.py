"""
Broker Credential Repository
TradeLog Trading Journal
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.db.repository import BaseRepository
from tradelog.db.models.broker import BrokerCredential


class BrokerCredentialRepository(BaseRepository[BrokerCredential]):
    """Repository for stored broker credentials."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(BrokerCredential, session)
    
    async def get_for(self, broker_name: str = "tradovate") -> Optional[BrokerCredential]:
        return await self.get_by_field("broker_name", broker_name)
    
    async def upsert(
        self,
        username: str,
        password: str,
        environment: str,
        broker_name: str = "tradovate",
    ) -> BrokerCredential:
        """Create or replace the stored credentials for a broker."""
        existing = await self.get_for(broker_name)
        if existing:
            return await self.update(existing, {
                "username": username,
                "password": password,
                "environment": environment,
                "access_token": None,
                "token_expiry": None,
            })
        return await self.create({
            "broker_name": broker_name,
            "username": username,
            "password": password,
            "environment": environment,
        })
