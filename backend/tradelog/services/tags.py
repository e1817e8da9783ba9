"""
Tag Service
TradeLog Trading Journal
"""
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from tradelog.db.models.tag import Tag
from tradelog.db.repositories.tags import TagRepository


class TagService:
    """List and create journal tags."""
    
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
    
    async def list_tags(self) -> List[Tag]:
        async with self._session_factory() as session:
            return await TagRepository(session).list_tags()
    
    async def create_tag(self, name: str, color: Optional[str] = None) -> Tag:
        async with self._session_factory() as session:
            async with session.begin():
                tag = await TagRepository(session).create_tag(name, color)
            await session.refresh(tag)
        logger.info(f"Created tag {tag.name} ({tag.color})")
        return tag
