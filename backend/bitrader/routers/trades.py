from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bitrader.database import get_db
from bitrader.core.deps import get_current_user
from bitrader.models.user import User
from bitrader.schemas.trade import CreateTradeRequest, TradeOut
from bitrader.services import trading

router = APIRouter(prefix="/api/trades", tags=["trades"])


@router.get("", response_model=List[TradeOut])
async def list_trades(
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trading.list_trades(db, user.id, limit)


@router.post("", response_model=TradeOut, status_code=201)
async def create_trade(
    body: CreateTradeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trade = await trading.place_order(
        db, user.id, body.symbol, body.side, body.quantity, body.price,
        asset_type=body.asset_type, order_type=body.order_type,
    )
    await db.commit()
    await db.refresh(trade)
    return trade


@router.get("/positions", response_model=List[TradeOut])
async def list_positions(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await trading.list_positions(db, user.id)


@router.patch("/{trade_id}/close", response_model=TradeOut)
async def close_trade(
    trade_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trade = await trading.close_trade(db, user.id, trade_id)
    await db.commit()
    await db.refresh(trade)
    return trade
