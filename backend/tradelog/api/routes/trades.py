from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from tradelog.api.deps import get_ingestion
from tradelog.schemas.trade import TradeRead, TradeStatus
from tradelog.services.ingestion import TradeIngestionService

router = APIRouter()


@router.get("", response_model=List[TradeRead])
async def list_trades(
    status: Optional[TradeStatus] = None,
    symbol: Optional[str] = None,
    ingestion: TradeIngestionService = Depends(get_ingestion),
):
    """List trades, newest first"""
    return await ingestion.list_trades(status=status.value if status else None, symbol=symbol)


@router.get("/{trade_id}", response_model=TradeRead)
async def get_trade(trade_id: int, ingestion: TradeIngestionService = Depends(get_ingestion)):
    return await ingestion.get_trade(trade_id)


@router.post("", response_model=TradeRead, status_code=201)
async def create_trade(
    payload: Dict[str, Any] = Body(...),
    ingestion: TradeIngestionService = Depends(get_ingestion),
):
    """Create a manually entered trade"""
    return await ingestion.create_trade(payload)


@router.put("/{trade_id}", response_model=TradeRead)
async def update_trade(
    trade_id: int,
    payload: Dict[str, Any] = Body(...),
    ingestion: TradeIngestionService = Depends(get_ingestion),
):
    """Replace a trade with a full record; status and P&L are re-derived"""
    return await ingestion.update_trade(trade_id, payload)


@router.delete("/{trade_id}")
async def delete_trade(trade_id: int, ingestion: TradeIngestionService = Depends(get_ingestion)):
    await ingestion.delete_trade(trade_id)
    return {"message": "Trade deleted successfully"}
