"""
Broker Sync Service
TradeLog Trading Journal

Pulls fills from the broker, aggregates them into orders and imports each
order through the ingestion pipeline. Re-running a sync is safe: orders
already in the import ledger are skipped.

Authentication and transport failures abort the run; trades committed
before the failure stay, and a retry picks up the rest. A contract that
cannot be resolved only fails its own order.
"""
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from tradelog.brokers.base import BaseBroker
from tradelog.brokers.tradovate import TradovateClient, token_expiry_for_storage
from tradelog.core.config import settings
from tradelog.core.exceptions import AuthenticationError, ValidationError
from tradelog.db.repositories.broker import BrokerCredentialRepository
from tradelog.schemas.broker import BrokerSession, BrokerSettingsOut, ConnectionTestResult
from tradelog.schemas.trade import ImportResult, ImportRowError
from tradelog.services.fill_aggregator import aggregate_fills
from tradelog.services.ingestion import TradeIngestionService
from tradelog.services.normalizer import NormalizedTrade

BrokerFactory = Callable[[str], BaseBroker]

BROKER_NAME = "tradovate"


def default_broker_factory(environment: str) -> BaseBroker:
    return TradovateClient(environment=environment)


class BrokerSyncService:
    """Stored broker settings, connection test and the sync run."""
    
    def __init__(
        self,
        session_factory: async_sessionmaker,
        ingestion: Optional[TradeIngestionService] = None,
        broker_factory: Optional[BrokerFactory] = None,
    ):
        self._session_factory = session_factory
        self.ingestion = ingestion or TradeIngestionService(session_factory)
        self._broker_factory = broker_factory or default_broker_factory
    
    # =========================================================================
    # Settings
    # =========================================================================
    
    async def get_settings(self) -> BrokerSettingsOut:
        """Stored settings without the password."""
        async with self._session_factory() as session:
            credential = await BrokerCredentialRepository(session).get_for(BROKER_NAME)
        if credential is None:
            return BrokerSettingsOut(configured=False)
        return BrokerSettingsOut(
            configured=True,
            username=credential.username,
            environment=credential.environment,
            last_sync_at=credential.last_sync_at,
        )
    
    async def save_settings(self, username: str, password: str, environment: str = "demo") -> BrokerSettingsOut:
        if not username or not password:
            raise ValidationError("Username and password are required")
        async with self._session_factory() as session:
            async with session.begin():
                await BrokerCredentialRepository(session).upsert(username, password, environment, BROKER_NAME)
        logger.info(f"Saved {BROKER_NAME} settings for {username} ({environment})")
        return await self.get_settings()
    
    async def delete_settings(self) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                repo = BrokerCredentialRepository(session)
                credential = await repo.get_for(BROKER_NAME)
                if credential is None:
                    return False
                await repo.delete(credential)
        return True
    
    async def test_connection(self, username: str, password: str, environment: str = "demo") -> ConnectionTestResult:
        """Authenticate and list accounts without importing anything."""
        async with self._broker_factory(environment) as broker:
            broker_session = await broker.authenticate(username, password)
            accounts = await broker.list_accounts(broker_session)
        return ConnectionTestResult(
            success=True,
            message="Connection successful",
            accounts=len(accounts),
            user_id=broker_session.user_id,
        )
    
    # =========================================================================
    # Sync Run
    # =========================================================================
    
    async def _load_credentials(self) -> Tuple[str, str, str, Optional[BrokerSession]]:
        """
        Credentials for the run plus the token stored by the previous sync,
        if it is still valid. Environment fallback credentials carry no token.
        """
        async with self._session_factory() as session:
            credential = await BrokerCredentialRepository(session).get_for(BROKER_NAME)
        if credential is not None:
            cached = None
            if credential.access_token and credential.token_expiry is not None:
                cached = BrokerSession(token=credential.access_token, expires_at=credential.token_expiry)
                if cached.is_expired():
                    cached = None
            return credential.username, credential.password, credential.environment, cached

        fallback = settings.tradovate
        if fallback.is_configured:
            return fallback.username, fallback.password, fallback.environment, None
        raise ValidationError("Tradovate not configured. Please add your credentials first.")
    
    async def _record_sync(self, broker_session: Optional[BrokerSession]) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                repo = BrokerCredentialRepository(session)
                credential = await repo.get_for(BROKER_NAME)
                if credential is None:
                    return
                values = {"last_sync_at": datetime.now(timezone.utc).replace(tzinfo=None)}
                if broker_session is not None:
                    values["access_token"] = broker_session.token
                    values["token_expiry"] = token_expiry_for_storage(broker_session)
                await repo.update(credential, values)
    
    async def sync(self) -> ImportResult:
        """
        Run one sync against the first broker account.
        
        The token stored by the previous run is reused until it expires.
        
        Raises:
            ValidationError: no credentials or no accounts
            AuthenticationError: credentials rejected
            UpstreamUnavailableError: broker unreachable mid-run
        """
        username, password, environment, broker_session = await self._load_credentials()

        async with self._broker_factory(environment) as broker:
            if broker_session is not None:
                try:
                    accounts = await broker.list_accounts(broker_session)
                except AuthenticationError:
                    # Revoked before its expiry
                    logger.info("Stored broker token rejected, authenticating again")
                    broker_session = None
            if broker_session is None:
                broker_session = await broker.authenticate(username, password)
                accounts = await broker.list_accounts(broker_session)
            if not accounts:
                raise ValidationError("No broker accounts found")
            account_id = accounts[0].get("id")
            
            fills = await broker.list_fills(account_id, broker_session)
            logger.info(f"Fetched {len(fills)} fills for account {account_id}")
            
            async def lookup(contract_id: str) -> str:
                return await broker.contract_lookup(contract_id, broker_session)
            
            aggregation = await aggregate_fills(fills, lookup)
        
        normalizer = self.ingestion.normalizer
        result = ImportResult()
        for failure in aggregation.failures:
            result.row_errors.append(ImportRowError(
                external_id=normalizer.broker_external_id(failure.order_id),
                message=failure.message,
            ))
        
        items: List[Tuple[int, NormalizedTrade]] = []
        for position, order in enumerate(aggregation.orders, start=1):
            try:
                items.append((position, normalizer.normalize_order(order, line=position)))
            except ValidationError as e:
                result.row_errors.append(ImportRowError(
                    line=position,
                    external_id=normalizer.broker_external_id(order.order_id),
                    message=e.message,
                ))
        
        await self.ingestion.import_batch(items, result)
        await self._record_sync(broker_session)
        
        logger.info(
            f"Sync completed: {result.inserted_count} imported, {result.skipped_count} skipped, "
            f"{len(result.row_errors)} errors"
        )
        return result
