"""
Tradovate Broker Client
TradeLog Trading Journal

Async REST client for the Tradovate API:
- Access-token authentication
- Account, fill and contract lookups
- Request timeouts mapped to UpstreamUnavailableError
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from tradelog.brokers.base import BaseBroker
from tradelog.core.config import TradovateSettings, settings
from tradelog.core.exceptions import (
    AuthenticationError,
    ContractLookupError,
    UpstreamUnavailableError,
)
from tradelog.schemas.broker import BrokerSession, Fill
from tradelog.schemas.trade import parse_timestamp, to_naive_utc


class TradovateClient(BaseBroker):
    """
    Tradovate REST client.
    
    One instance wraps one httpx.AsyncClient; the caller owns the
    BrokerSession returned by authenticate().
    """
    
    BASE_URLS = {
        "demo": "https://demo.tradovateapi.com/v1",
        "live": "https://live.tradovateapi.com/v1",
    }
    
    def __init__(
        self,
        environment: str = "demo",
        config: Optional[TradovateSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            environment: "demo" or "live"
            config: Tradovate settings (defaults to application settings)
            transport: Optional httpx transport, used to stub the API
        """
        if environment not in self.BASE_URLS:
            raise ValueError(f"Unknown Tradovate environment: {environment}")
        self.environment = environment
        self._config = config or settings.tradovate
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URLS[environment],
            timeout=self._config.request_timeout,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            transport=transport,
        )
    
    async def close(self) -> None:
        await self._client.aclose()
    
    async def _request(
        self,
        method: str,
        path: str,
        session: Optional[BrokerSession] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make an API request and return the decoded JSON body.
        
        Raises:
            AuthenticationError: 401/403 or an expired session
            UpstreamUnavailableError: network failure, timeout, 5xx or a
                body that is not JSON
            httpx.HTTPStatusError: any other non-2xx status
        """
        headers = {}
        if session is not None:
            session.ensure_valid()
            headers["Authorization"] = f"Bearer {session.token}"
        
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Tradovate {method} {path} timed out")
            raise UpstreamUnavailableError(f"Tradovate request timed out: {path}") from e
        except httpx.TransportError as e:
            logger.error(f"Tradovate {method} {path} failed: {e}")
            raise UpstreamUnavailableError(f"Tradovate unreachable: {e}") from e
        
        if response.status_code in (401, 403):
            raise AuthenticationError(f"Tradovate rejected the request: {response.status_code}")
        if response.status_code >= 500:
            logger.error(f"Tradovate server error: {response.status_code} - {response.text}")
            raise UpstreamUnavailableError(f"Tradovate server error: {response.status_code}")
        response.raise_for_status()
        
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(f"Failed to parse Tradovate response: {response.text[:200]}") from e
    
    async def authenticate(self, username: str, password: str) -> BrokerSession:
        """Request an access token."""
        try:
            body = await self._request("POST", "/auth/accesstokenrequest", json_data={
                "name": username,
                "password": password,
                "appId": self._config.app_id,
                "appVersion": self._config.app_version,
                "deviceId": self._config.device_id,
                "cid": None,
                "sec": None,
            })
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(f"Authentication failed: {e.response.status_code}") from e
        
        # Bad credentials come back as 200 with an errorText body
        if not isinstance(body, dict) or body.get("errorText") or not body.get("accessToken"):
            reason = body.get("errorText") if isinstance(body, dict) else None
            raise AuthenticationError(f"Authentication failed: {reason or 'no access token returned'}")
        
        expires_at = parse_timestamp(body.get("expirationTime"))
        session = BrokerSession(
            token=body["accessToken"],
            expires_at=expires_at if isinstance(expires_at, datetime) else None,
            user_id=str(body["userId"]) if body.get("userId") is not None else None,
        )
        logger.info(f"✓ Tradovate authenticated ({self.environment}, user {session.user_id})")
        return session
    
    async def list_accounts(self, session: BrokerSession) -> List[Dict[str, Any]]:
        return list(await self._request("GET", "/account/list", session=session) or [])
    
    async def list_fills(self, account_id: Any, session: BrokerSession) -> List[Fill]:
        payload = await self._request("GET", "/fill/list", session=session, params={"accountId": account_id})
        fills = []
        for item in payload or []:
            try:
                fills.append(Fill.from_broker(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring malformed Tradovate fill {item!r}: {e}")
        return fills
    
    async def contract_lookup(self, contract_id: str, session: BrokerSession) -> str:
        try:
            body = await self._request("GET", "/contract/item", session=session, params={"id": contract_id})
        except httpx.HTTPStatusError as e:
            raise ContractLookupError(contract_id, f"HTTP {e.response.status_code}") from e
        
        name = body.get("name") if isinstance(body, dict) else None
        if not name:
            raise ContractLookupError(contract_id, "no contract name returned")
        return name


def token_expiry_for_storage(session: BrokerSession) -> Optional[datetime]:
    return to_naive_utc(session.expires_at) if session.expires_at else None
