from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from tradelog.db.base import Base


class BrokerCredential(Base):
    """Stored broker credentials and sync bookkeeping (single row per broker)."""
    __tablename__ = "broker_credentials"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    broker_name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, default="tradovate")
    
    # Credentials (encrypt at rest in production)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    environment: Mapped[str] = mapped_column(String(10), nullable=False, default="demo")  # demo, live
    
    # Session cache
    access_token: Mapped[Optional[str]] = mapped_column(String(2048))
    token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime)
    
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, onupdate=func.now())
