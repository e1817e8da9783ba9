"""
Repository Layer
TradeLog Trading Journal

Provides data access abstractions for all domain models.
"""

from tradelog.db.repositories.trading import TradeRepository
from tradelog.db.repositories.imports import ImportLedger
from tradelog.db.repositories.broker import BrokerCredentialRepository
from tradelog.db.repositories.tags import TagRepository

__all__ = [
    "TradeRepository",
    "ImportLedger",
    "BrokerCredentialRepository",
    "TagRepository",
]
