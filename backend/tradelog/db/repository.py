"""
Base Repository Pattern Implementation
TradeLog Trading Journal

Generic async CRUD over one model. Repositories only flush; the caller's
session transaction decides when a unit of work commits or rolls back.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.db.base import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic async repository with CRUD operations.
    
    Type Parameters:
        ModelType: SQLAlchemy model class
    """
    
    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.
        
        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session
    
    async def get(self, id: int) -> Optional[ModelType]:
        """Get a single record by primary key."""
        return await self.session.get(self.model, id)
    
    async def get_by_field(self, field_name: str, value: Any) -> Optional[ModelType]:
        """
        Get a single record by field value.
        
        Raises:
            ValueError: the model has no such field
        """
        field = getattr(self.model, field_name, None)
        if field is None:
            raise ValueError(f"Field {field_name} not found on {self.model.__name__}")
        
        result = await self.session.execute(
            select(self.model).where(field == value)
        )
        return result.scalar_one_or_none()
    
    async def add(self, obj: ModelType) -> ModelType:
        """Add a record and flush so generated keys are populated."""
        self.session.add(obj)
        await self.session.flush()
        return obj
    
    async def create(self, data: Dict[str, Any]) -> ModelType:
        """Create a record from a dict of column values."""
        return await self.add(self.model(**data))
    
    async def update(self, obj: ModelType, data: Dict[str, Any]) -> ModelType:
        """Apply column values to a loaded record."""
        for field, value in data.items():
            if hasattr(obj, field):
                setattr(obj, field, value)
        await self.session.flush()
        return obj
    
    async def delete(self, obj: ModelType) -> None:
        """Hard delete a loaded record."""
        await self.session.delete(obj)
        await self.session.flush()
