"""
Trade Schemas
Typed trade candidate at the ingestion boundary and trade responses
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class TradeDirection(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ImportSource(str, Enum):
    MANUAL = "manual"
    CSV = "csv"
    BROKER = "broker"


_DIRECTION_ALIASES = {
    "LONG": TradeDirection.LONG,
    "BUY": TradeDirection.LONG,
    "SHORT": TradeDirection.SHORT,
    "SELL": TradeDirection.SHORT,
}


def to_naive_utc(value: datetime) -> datetime:
    """Store every timestamp as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(value: Any) -> Any:
    """Accept date-only or full ISO-8601 strings, including a trailing Z."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            # Let pydantic report the malformed value
            return value
    return value


# =============================================================================
# Ingestion Boundary
# =============================================================================

class TradeCandidate(BaseModel):
    """
    Validated trade input, shared by manual entry, CSV rows and broker orders.
    
    Accepts the journal's column names (``type``/``trade_type``,
    ``entry_date``, ``exit_date``) as aliases. Empty strings count as absent.
    """
    
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")
    
    symbol: str = Field(min_length=1, max_length=32)
    direction: TradeDirection = Field(validation_alias=AliasChoices("direction", "trade_type", "type"))
    entry_time: datetime = Field(validation_alias=AliasChoices("entry_time", "entry_date"))
    exit_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("exit_time", "exit_date"))
    entry_price: float = Field(ge=0)
    exit_price: Optional[float] = Field(None, ge=0)
    quantity: int = Field(gt=0, description="Shares or contracts, positive integer")
    fees: float = Field(0.0, ge=0)
    stop_loss: Optional[float] = Field(None, ge=0)
    take_profit: Optional[float] = Field(None, ge=0)
    strategy: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    screenshot_url: Optional[str] = Field(None, max_length=500)
    
    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
    
    @field_validator("fees", mode="before")
    @classmethod
    def default_fees(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0.0
        return value
    
    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, value: str) -> str:
        return value.upper()
    
    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _DIRECTION_ALIASES.get(value.strip().upper(), value)
        return value
    
    @field_validator("entry_time", "exit_time", mode="before")
    @classmethod
    def parse_times(cls, value: Any) -> Any:
        return parse_timestamp(value)
    
    @field_validator("entry_time", "exit_time")
    @classmethod
    def normalize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value) if value is not None else None
    
    @model_validator(mode="after")
    def check_exit_after_entry(self) -> "TradeCandidate":
        if self.exit_time is not None and self.exit_time < self.entry_time:
            raise ValueError("exit_date must not be earlier than entry_date")
        return self


# =============================================================================
# Responses
# =============================================================================

class TradeRead(BaseModel):
    """Persisted trade with derived status and P&L."""
    
    model_config = ConfigDict(from_attributes=True)
    
    id: int
    symbol: str
    direction: TradeDirection
    entry_time: datetime
    exit_time: Optional[datetime] = None
    entry_price: float
    exit_price: Optional[float] = None
    quantity: int
    fees: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    strategy: Optional[str] = None
    notes: Optional[str] = None
    screenshot_url: Optional[str] = None
    status: TradeStatus
    profit_loss: Optional[float] = None
    profit_loss_percent: Optional[float] = None
    external_source_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImportRowError(BaseModel):
    """One rejected row or order group of a batch import."""
    line: Optional[int] = Field(None, description="Source line (CSV) or position (broker)")
    external_id: Optional[str] = None
    message: str


class ImportResult(BaseModel):
    """Outcome of a batch import or broker sync run."""
    inserted_count: int = 0
    skipped_count: int = 0
    row_errors: List[ImportRowError] = Field(default_factory=list)
    
    @property
    def total(self) -> int:
        return self.inserted_count + self.skipped_count + len(self.row_errors)
    
    def to_response(self) -> dict:
        return {
            "success": True,
            "imported": self.inserted_count,
            "skipped": self.skipped_count,
            "total": self.total,
            "errors": [error.model_dump(exclude_none=True) for error in self.row_errors],
        }
