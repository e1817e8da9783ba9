from fastapi import APIRouter, Depends

from tradelog.api.deps import get_broker_sync
from tradelog.core.exceptions import NotFoundError
from tradelog.schemas.broker import BrokerCredentialsIn, BrokerSettingsOut, ConnectionTestResult
from tradelog.services.broker_sync import BrokerSyncService

router = APIRouter()


@router.get("/settings", response_model=BrokerSettingsOut)
async def get_settings(service: BrokerSyncService = Depends(get_broker_sync)):
    """Stored broker settings (the password is never returned)"""
    return await service.get_settings()


@router.post("/settings", response_model=BrokerSettingsOut)
async def save_settings(
    credentials: BrokerCredentialsIn,
    service: BrokerSyncService = Depends(get_broker_sync),
):
    return await service.save_settings(credentials.username, credentials.password, credentials.environment)


@router.delete("/settings")
async def delete_settings(service: BrokerSyncService = Depends(get_broker_sync)):
    if not await service.delete_settings():
        raise NotFoundError("Broker settings", "tradovate")
    return {"message": "Broker settings deleted"}


@router.post("/test", response_model=ConnectionTestResult)
async def test_connection(
    credentials: BrokerCredentialsIn,
    service: BrokerSyncService = Depends(get_broker_sync),
):
    """Authenticate and list accounts without importing"""
    return await service.test_connection(credentials.username, credentials.password, credentials.environment)


@router.post("/sync")
async def sync(service: BrokerSyncService = Depends(get_broker_sync)):
    """Import today's broker fills; already imported orders are skipped"""
    result = await service.sync()
    return result.to_response()
