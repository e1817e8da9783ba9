"""
Tests for the Tradovate REST client against a stubbed transport.
"""

import json
import pytest
from datetime import datetime, timedelta, timezone

import httpx

from tradelog.brokers.tradovate import TradovateClient, token_expiry_for_storage
from tradelog.core.exceptions import (
    AuthenticationError,
    ContractLookupError,
    UpstreamUnavailableError,
)
from tradelog.schemas.broker import BrokerSession


def make_client(handler):
    return TradovateClient("demo", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestAuthenticate:
    """Tests for the access token request."""
    
    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}
        
        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "accessToken": "tok",
                "expirationTime": "2030-01-01T00:00:00Z",
                "userId": 42,
            })
        
        async with make_client(handler) as client:
            session = await client.authenticate("trader", "secret")
        
        assert seen["url"] == "https://demo.tradovateapi.com/v1/auth/accesstokenrequest"
        assert seen["body"]["name"] == "trader"
        assert seen["body"]["password"] == "secret"
        assert seen["body"]["appId"] == "trading-journal"
        assert session.token == "tok"
        assert session.user_id == "42"
        assert token_expiry_for_storage(session) == datetime(2030, 1, 1)
    
    @pytest.mark.asyncio
    async def test_error_text_is_auth_failure(self):
        """Bad credentials come back as 200 with errorText."""
        def handler(request):
            return httpx.Response(200, json={"errorText": "Incorrect username or password"})
        
        async with make_client(handler) as client:
            with pytest.raises(AuthenticationError):
                await client.authenticate("trader", "wrong")
    
    @pytest.mark.asyncio
    async def test_unauthorized_status(self):
        async with make_client(lambda request: httpx.Response(401)) as client:
            with pytest.raises(AuthenticationError):
                await client.authenticate("trader", "wrong")
    
    def test_unknown_environment(self):
        with pytest.raises(ValueError):
            TradovateClient("paper")


@pytest.mark.unit
class TestRequests:
    """Tests for authenticated calls and error mapping."""
    
    @pytest.fixture
    def session(self):
        return BrokerSession(token="tok", expires_at=datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1))
    
    @pytest.mark.asyncio
    async def test_list_fills(self, session):
        seen = {}
        
        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["account"] = request.url.params.get("accountId")
            return httpx.Response(200, json=[
                {"id": 1, "orderId": 1001, "contractId": 555, "qty": 3, "price": 100.0,
                 "timestamp": "2025-01-15T14:30:00Z", "action": "Buy"},
                {"id": 2, "orderId": 1001, "contractId": 555, "qty": 2},
            ])
        
        async with make_client(handler) as client:
            fills = await client.list_fills(9001, session)
        
        assert seen["auth"] == "Bearer tok"
        assert seen["account"] == "9001"
        assert len(fills) == 1
        assert fills[0].order_id == "1001"
        assert fills[0].timestamp == datetime(2025, 1, 15, 14, 30)
    
    @pytest.mark.asyncio
    async def test_list_accounts(self, session):
        handler = lambda request: httpx.Response(200, json=[{"id": 9001}])
        async with make_client(handler) as client:
            assert await client.list_accounts(session) == [{"id": 9001}]
    
    @pytest.mark.asyncio
    async def test_contract_lookup(self, session):
        def handler(request):
            assert request.url.params.get("id") == "555"
            return httpx.Response(200, json={"id": 555, "name": "MNQH5"})
        
        async with make_client(handler) as client:
            assert await client.contract_lookup("555", session) == "MNQH5"
    
    @pytest.mark.asyncio
    async def test_contract_not_found(self, session):
        async with make_client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(ContractLookupError):
                await client.contract_lookup("555", session)
    
    @pytest.mark.asyncio
    async def test_contract_without_name(self, session):
        async with make_client(lambda request: httpx.Response(200, json={})) as client:
            with pytest.raises(ContractLookupError):
                await client.contract_lookup("555", session)
    
    @pytest.mark.asyncio
    async def test_server_error(self, session):
        async with make_client(lambda request: httpx.Response(503, text="down")) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.list_accounts(session)
    
    @pytest.mark.asyncio
    async def test_non_json_body(self, session):
        async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.list_accounts(session)
    
    @pytest.mark.asyncio
    async def test_network_failure(self, session):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        
        async with make_client(handler) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.list_accounts(session)
    
    @pytest.mark.asyncio
    async def test_timeout(self, session):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)
        
        async with make_client(handler) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.list_fills(1, session)
    
    @pytest.mark.asyncio
    async def test_expired_session_rejected_before_request(self):
        calls = []
        
        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[])
        
        expired = BrokerSession(token="tok", expires_at=datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=5))
        async with make_client(handler) as client:
            with pytest.raises(AuthenticationError):
                await client.list_accounts(expired)
        assert calls == []
