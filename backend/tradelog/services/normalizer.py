"""
Trade Normalizer

Turns loosely-typed trade input (request bodies, CSV rows, aggregated broker
orders) into a validated candidate, derives status and P&L under the
configured status policy, and assigns the external id used for dedup.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from tradelog.core.config import StatusPolicy, settings
from tradelog.core.exceptions import ValidationError
from tradelog.core.instruments import InstrumentResolver, default_resolver
from tradelog.schemas.broker import AggregatedOrder
from tradelog.schemas.trade import ImportSource, TradeCandidate, TradeStatus
from tradelog.services.pnl import compute_profit_loss


@dataclass
class NormalizedTrade:
    """A candidate ready to persist, with its derived fields and dedup key."""
    candidate: TradeCandidate
    fields: Dict[str, Any]
    source: ImportSource
    external_id: Optional[str] = None


def _format_number(value: float) -> str:
    text = f"{value:.8f}".rstrip("0").rstrip(".")
    return text or "0"


def _describe_errors(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "input"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class TradeNormalizer:
    """
    Validation, status/P&L derivation and external-id assignment.
    
    Exactly one status policy is active per normalizer:
    - EXIT_PRICE_GATED: OPEN until an exit price is supplied, then CLOSED.
    - ALWAYS_CLOSED: every trade is CLOSED.
    Under both, profit_loss is set if and only if exit_price is present.
    """
    
    def __init__(
        self,
        status_policy: Optional[StatusPolicy] = None,
        resolver: Optional[InstrumentResolver] = None,
        csv_source_tag: Optional[str] = None,
        broker_source_tag: Optional[str] = None,
    ):
        journal = settings.journal
        self.status_policy = StatusPolicy(status_policy or journal.status_policy)
        self.resolver = resolver or default_resolver
        self.csv_source_tag = csv_source_tag or journal.csv_source_tag
        self.broker_source_tag = broker_source_tag or journal.broker_source_tag
    
    # =========================================================================
    # Validation
    # =========================================================================
    
    def validate(self, raw: Mapping[str, Any], line: Optional[int] = None) -> TradeCandidate:
        """Coerce raw input into a TradeCandidate or raise ValidationError."""
        if isinstance(raw, TradeCandidate):
            return raw
        try:
            return TradeCandidate.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise ValidationError(_describe_errors(e), line=line) from e
    
    # =========================================================================
    # Derivation
    # =========================================================================
    
    def derive_status(self, candidate: TradeCandidate) -> TradeStatus:
        if self.status_policy == StatusPolicy.ALWAYS_CLOSED:
            return TradeStatus.CLOSED
        return TradeStatus.CLOSED if candidate.exit_price is not None else TradeStatus.OPEN
    
    def derive_fields(self, candidate: TradeCandidate) -> Dict[str, Any]:
        """Column values for a Trade row, including status and P&L."""
        profit_loss = None
        profit_loss_percent = None
        if candidate.exit_price is not None:
            result = compute_profit_loss(
                symbol=candidate.symbol,
                direction=candidate.direction,
                entry_price=candidate.entry_price,
                exit_price=candidate.exit_price,
                quantity=candidate.quantity,
                fees=candidate.fees,
                resolver=self.resolver,
            )
            profit_loss = result.profit_loss
            profit_loss_percent = result.profit_loss_percent
        
        fields = candidate.model_dump()
        fields["direction"] = candidate.direction.value
        fields["status"] = self.derive_status(candidate).value
        fields["profit_loss"] = profit_loss
        fields["profit_loss_percent"] = profit_loss_percent
        return fields
    
    # =========================================================================
    # External Ids
    # =========================================================================
    
    def csv_external_id(self, candidate: TradeCandidate) -> str:
        """Natural key over symbol, entry date, entry price and quantity."""
        return "_".join([
            self.csv_source_tag,
            candidate.symbol,
            candidate.entry_time.isoformat(),
            _format_number(candidate.entry_price),
            str(candidate.quantity),
        ])
    
    def broker_external_id(self, order_id: str) -> str:
        return f"{self.broker_source_tag}_{order_id}"
    
    # =========================================================================
    # Entry Points
    # =========================================================================
    
    def normalize(
        self,
        raw: Mapping[str, Any],
        source: ImportSource = ImportSource.MANUAL,
        order_id: Optional[str] = None,
        line: Optional[int] = None,
    ) -> NormalizedTrade:
        """
        Validate raw input and derive everything needed to persist it.
        
        Manual entries get no external id and are never deduplicated.
        """
        candidate = self.validate(raw, line=line)
        fields = self.derive_fields(candidate)
        
        external_id = None
        if source == ImportSource.CSV:
            external_id = self.csv_external_id(candidate)
        elif source == ImportSource.BROKER:
            if not order_id:
                raise ValidationError("Broker trades require an order id", line=line, field="order_id")
            external_id = self.broker_external_id(order_id)
        
        fields["external_source_id"] = external_id
        return NormalizedTrade(candidate=candidate, fields=fields, source=source, external_id=external_id)
    
    def normalize_order(self, order: AggregatedOrder, line: Optional[int] = None) -> NormalizedTrade:
        return self.normalize(order.to_trade_input(), ImportSource.BROKER, order_id=order.order_id, line=line)
