from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from tradelog.db.base import Base

DEFAULT_TAG_COLOR = "#3B82F6"


class Tag(Base):
    """Named, colored label for organizing the journal."""
    __tablename__ = "tags"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    
    def __repr__(self) -> str:
        return f"<Tag {self.id} {self.name} {self.color}>"
