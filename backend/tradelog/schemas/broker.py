"""
Broker Schemas
Fills, aggregated orders and stored broker settings
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from tradelog.core.exceptions import AuthenticationError
from tradelog.schemas.trade import TradeDirection, parse_timestamp, to_naive_utc


# =============================================================================
# Broker Session
# =============================================================================

@dataclass
class BrokerSession:
    """Access token issued by the broker, passed explicitly to every call."""
    token: str
    expires_at: Optional[datetime]
    user_id: Optional[str] = None
    
    def is_expired(self, now: Optional[datetime] = None, leeway: timedelta = timedelta(seconds=30)) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now + leeway >= expires
    
    def ensure_valid(self) -> None:
        if not self.token or self.is_expired():
            raise AuthenticationError("Broker session expired, authenticate again")


# =============================================================================
# Fills
# =============================================================================

@dataclass
class Fill:
    """A single broker execution. Fills sharing an order_id form one trade."""
    order_id: str
    contract_id: str
    quantity: float
    price: float
    timestamp: datetime
    action: Optional[str] = None  # Buy / Sell
    commission: float = 0.0
    fill_id: Optional[str] = None
    
    @property
    def is_buy(self) -> bool:
        if self.action:
            return self.action.strip().lower() == "buy"
        return self.quantity > 0
    
    @classmethod
    def from_broker(cls, payload: Dict[str, Any]) -> "Fill":
        """Build from a Tradovate ``fill/list`` entry."""
        timestamp = parse_timestamp(payload.get("timestamp"))
        if not isinstance(timestamp, datetime):
            raise ValueError(f"Invalid fill timestamp: {payload.get('timestamp')!r}")
        return cls(
            order_id=str(payload["orderId"]),
            contract_id=str(payload["contractId"]),
            quantity=float(payload.get("qty") or 0),
            price=float(payload["price"]),
            timestamp=to_naive_utc(timestamp),
            action=payload.get("action"),
            commission=float(payload.get("commission") or 0),
            fill_id=str(payload["id"]) if payload.get("id") is not None else None,
        )


@dataclass
class AggregatedOrder:
    """One logical trade built from all fills of a broker order."""
    order_id: str
    contract_id: str
    symbol: str
    direction: TradeDirection
    total_quantity: int
    weighted_avg_price: float
    total_fees: float
    entry_time: datetime
    fill_count: int = 1
    
    def to_trade_input(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "direction": self.direction.value,
            "entry_time": self.entry_time,
            "entry_price": self.weighted_avg_price,
            "quantity": self.total_quantity,
            "fees": self.total_fees,
            "notes": f"Imported from Tradovate - Order ID: {self.order_id}",
        }


@dataclass
class AggregationFailure:
    order_id: str
    contract_id: str
    message: str


@dataclass
class AggregationResult:
    orders: List[AggregatedOrder] = field(default_factory=list)
    failures: List[AggregationFailure] = field(default_factory=list)


# =============================================================================
# Stored Settings
# =============================================================================

class BrokerCredentialsIn(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    environment: Literal["demo", "live"] = "demo"


class BrokerSettingsOut(BaseModel):
    configured: bool
    username: Optional[str] = None
    environment: Optional[str] = None
    last_sync_at: Optional[datetime] = None


class ConnectionTestResult(BaseModel):
    success: bool
    message: str
    accounts: int = 0
    user_id: Optional[str] = None
