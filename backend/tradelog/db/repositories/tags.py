"""
Tag Repository
TradeLog Trading Journal
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.core.exceptions import ConflictError
from tradelog.db.repository import BaseRepository
from tradelog.db.models.tag import DEFAULT_TAG_COLOR, Tag


class TagRepository(BaseRepository[Tag]):
    """Repository for journal tags."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Tag, session)
    
    async def list_tags(self) -> List[Tag]:
        """All tags in name order."""
        result = await self.session.execute(select(self.model).order_by(self.model.name))
        return list(result.scalars().all())
    
    async def create_tag(self, name: str, color: Optional[str] = None) -> Tag:
        """
        Raises:
            ConflictError: a tag with this name already exists
        """
        try:
            return await self.create({"name": name, "color": color or DEFAULT_TAG_COLOR})
        except IntegrityError as e:
            raise ConflictError(f"Tag {name!r} already exists", name=name) from e
