"""
Test configuration and shared fixtures for TradeLog backend tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from tradelog.core.config import StatusPolicy
from tradelog.db.models.trading import Trade
from tradelog.db.session import build_engine, build_session_factory, init_db
from tradelog.schemas.broker import BrokerSession, Fill
from tradelog.services.ingestion import TradeIngestionService
from tradelog.services.normalizer import TradeNormalizer


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine(tmp_path):
    """Async SQLite engine on a temp file with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/journal.db")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the temp database."""
    return build_session_factory(engine)


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def normalizer():
    """Normalizer with the exit-price-gated policy and default tags."""
    return TradeNormalizer(
        status_policy=StatusPolicy.EXIT_PRICE_GATED,
        csv_source_tag="csv",
        broker_source_tag="tradovate",
    )


@pytest.fixture
def ingestion(session_factory, normalizer):
    """Ingestion service over the temp database."""
    return TradeIngestionService(session_factory, normalizer)


# =============================================================================
# Broker Mocks
# =============================================================================

@pytest.fixture
def broker_session():
    """A broker session that stays valid for the test run."""
    return BrokerSession(
        token="test-token",
        expires_at=datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1),
        user_id="42",
    )


@pytest.fixture
def sample_fills():
    """Two fills on one order and one fill on another."""
    return [
        Fill(order_id="1001", contract_id="555", quantity=3, price=100.0,
             timestamp=datetime(2025, 1, 15, 14, 30, 5), action="Buy", commission=1.0),
        Fill(order_id="1001", contract_id="555", quantity=2, price=110.0,
             timestamp=datetime(2025, 1, 15, 14, 30, 1), action="Buy", commission=0.5),
        Fill(order_id="1002", contract_id="777", quantity=1, price=5000.0,
             timestamp=datetime(2025, 1, 15, 15, 0, 0), action="Sell", commission=0.25),
    ]


@pytest.fixture
def mock_broker(broker_session, sample_fills):
    """Create a mock broker for testing."""
    broker = AsyncMock()
    broker.__aenter__.return_value = broker
    broker.__aexit__.return_value = False

    broker.authenticate = AsyncMock(return_value=broker_session)
    broker.list_accounts = AsyncMock(return_value=[{"id": 9001, "name": "DEMO9001"}])
    broker.list_fills = AsyncMock(return_value=sample_fills)

    symbols = {"555": "MNQH5", "777": "ESH5"}

    async def contract_lookup(contract_id, session):
        return symbols[contract_id]

    broker.contract_lookup = AsyncMock(side_effect=contract_lookup)
    return broker


@pytest.fixture
def broker_factory(mock_broker):
    """Factory handing out the mock broker for any environment."""
    return MagicMock(return_value=mock_broker)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_trade_input():
    """A closed long equity trade as entered by hand."""
    return {
        "symbol": "aapl",
        "type": "LONG",
        "entry_date": "2025-01-15T14:30:00",
        "exit_date": "2025-01-16T15:00:00",
        "entry_price": 150.0,
        "exit_price": 155.0,
        "quantity": 100,
        "fees": 2.5,
        "strategy": "Breakout",
    }


@pytest.fixture
def make_trade():
    """Build unsaved Trade rows for the analytics engine."""
    counter = {"id": 0}

    def _make(profit_loss, entry_time, exit_time=None, symbol="AAPL", strategy=None, status=None):
        counter["id"] += 1
        return Trade(
            id=counter["id"],
            symbol=symbol,
            direction="LONG",
            entry_time=entry_time,
            exit_time=exit_time,
            entry_price=100.0,
            exit_price=None if profit_loss is None else 100.0,
            quantity=1,
            fees=0.0,
            strategy=strategy,
            status=status or ("OPEN" if profit_loss is None else "CLOSED"),
            profit_loss=profit_loss,
            profit_loss_percent=None if profit_loss is None else profit_loss,
        )

    return _make


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
