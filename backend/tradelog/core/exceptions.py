"""
Error Taxonomy
TradeLog Trading Journal

Exceptions raised by the ingestion pipeline, the broker collaborator and
the persistence layer. Each error carries the category used for routing
it to an HTTP status or to a row-level import error.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Error categories for routing and handling."""
    VALIDATION = "validation"   # Malformed or missing input
    DUPLICATE = "duplicate"     # Already imported external id
    NOT_FOUND = "not_found"     # Unknown record id
    BROKER = "broker"           # Broker rejected the request
    NETWORK = "network"         # Broker unreachable or timed out
    ARITHMETIC = "arithmetic"   # Guarded division in analytics


class TradeLogError(Exception):
    """Base class for all journal errors."""
    
    category: ErrorCategory = ErrorCategory.VALIDATION
    
    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "category": self.category.value,
            **{k: v for k, v in self.context.items() if v is not None},
        }


class ValidationError(TradeLogError):
    """Malformed or missing required field, for a row or a whole request."""
    
    category = ErrorCategory.VALIDATION
    
    def __init__(self, message: str, line: Optional[int] = None, field: Optional[str] = None):
        super().__init__(message, line=line, field=field)
        self.line = line
        self.field = field


class ConflictError(TradeLogError):
    """A uniqueness constraint rejected the write."""
    
    category = ErrorCategory.DUPLICATE


class DuplicateImportError(ConflictError):
    """External id already present in the import ledger. Resolved as a skip."""
    
    def __init__(self, external_id: str):
        super().__init__(f"Already imported: {external_id}", external_id=external_id)
        self.external_id = external_id


class NotFoundError(TradeLogError):
    """Update or delete on an unknown id."""
    
    category = ErrorCategory.NOT_FOUND
    
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class AuthenticationError(TradeLogError):
    """Broker rejected the credentials or the session token expired."""
    
    category = ErrorCategory.BROKER


class UpstreamUnavailableError(TradeLogError):
    """Broker network failure, timeout or unusable response."""
    
    category = ErrorCategory.NETWORK


class ContractLookupError(TradeLogError):
    """A contract id could not be resolved to a symbol. Row-level during sync."""
    
    category = ErrorCategory.BROKER
    
    def __init__(self, contract_id: Any, reason: str = "contract lookup failed"):
        super().__init__(f"Contract {contract_id}: {reason}", contract_id=contract_id)
        self.contract_id = contract_id


class ArithmeticGuardError(TradeLogError):
    """Zero denominator in an analytics ratio.
    
    Never raised out of the analytics engine; ``safe_div`` resolves it to 0.
    """
    
    category = ErrorCategory.ARITHMETIC
