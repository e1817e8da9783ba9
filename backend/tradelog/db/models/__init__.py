"""
Database Models Package
TradeLog Trading Journal

Exports all SQLAlchemy models for the application.
"""

from tradelog.db.base import Base

from tradelog.db.models.trading import (
    Trade,
    ImportRecord,
)

from tradelog.db.models.broker import BrokerCredential

from tradelog.db.models.tag import Tag
