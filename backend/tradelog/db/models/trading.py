"""
Domain Models - Trades & Import Ledger
TradeLog Trading Journal

SQLAlchemy models for:
- Trades (canonical journal entries)
- Import records (external id -> trade id dedup ledger)
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from tradelog.db.base import Base


class Trade(Base):
    """
    Canonical trade record.
    
    status and the profit_loss pair are derived at write time; profit_loss
    is non-null exactly when exit_price is present.
    """
    __tablename__ = "trades"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    
    # Trade Details
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    direction: Mapped[str] = mapped_column(String(5), nullable=False)  # LONG, SHORT
    entry_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    exit_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    entry_price: Mapped[float] = mapped_column(Float, nullable=False)
    exit_price: Mapped[Optional[float]] = mapped_column(Float)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    fees: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    
    # Risk Levels
    stop_loss: Mapped[Optional[float]] = mapped_column(Float)
    take_profit: Mapped[Optional[float]] = mapped_column(Float)
    
    # Journal
    strategy: Mapped[Optional[str]] = mapped_column(String(100))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    screenshot_url: Mapped[Optional[str]] = mapped_column(String(500))
    
    # Derived
    status: Mapped[str] = mapped_column(String(10), nullable=False, default='OPEN')  # OPEN, CLOSED
    profit_loss: Mapped[Optional[float]] = mapped_column(Float)
    profit_loss_percent: Mapped[Optional[float]] = mapped_column(Float)
    
    external_source_id: Mapped[Optional[str]] = mapped_column(String(255))
    
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, onupdate=func.now())
    
    __table_args__ = (
        Index('idx_trades_entry_time', 'entry_time'),
        Index('idx_trades_status', 'status'),
        Index('idx_trades_symbol', 'symbol'),
    )
    __mapper_args__ = {"eager_defaults": True}
    
    def __repr__(self) -> str:
        return f"<Trade {self.id} {self.direction} {self.quantity} {self.symbol} {self.status}>"


class ImportRecord(Base):
    """
    Dedup ledger entry: at most one row per external id.
    
    The unique constraint on external_id is what makes concurrent imports
    safe. The row outlives its trade (trade_id becomes NULL on delete), so a
    deleted trade is not re-imported under the same external id.
    """
    __tablename__ = "import_records"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)  # csv, broker
    trade_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("trades.id", ondelete="SET NULL"),
    )
    imported_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    
    __table_args__ = (
        Index('idx_import_records_trade', 'trade_id'),
    )
