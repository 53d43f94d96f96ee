"""Order placement and the user side of the position lifecycle."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.core.errors import NotFoundError, InvalidTransitionError, ValidationError
from bitrader.models.trade import (
    Trade, TradeStatus, ApprovalState, AssetType, TradeSide, OrderType,
)
from bitrader.services.ledger import adjust_balance, AdjustmentType

logger = logging.getLogger(__name__)

OPEN_POSITION = (TradeStatus.approved, TradeStatus.executed)


async def place_order(
    db: AsyncSession,
    user_id: int,
    symbol: str,
    side: TradeSide,
    quantity: Decimal,
    price: Decimal,
    asset_type: AssetType = AssetType.crypto,
    order_type: OrderType = OrderType.market,
) -> Trade:
    """Record an order for admin review.

    Orders are accepted as submitted: there is no buying-power or position
    check here, approval is the only gate.
    """
    symbol = (symbol or "").strip().upper()
    if not symbol:
        raise ValidationError("Symbol is required")
    quantity = Decimal(quantity)
    price = Decimal(price)
    if quantity <= 0 or price <= 0:
        raise ValidationError("Quantity and price must be positive")

    trade = Trade(
        user_id=user_id,
        symbol=symbol,
        asset_type=asset_type,
        side=side,
        order_type=order_type,
        quantity=quantity,
        price=price,
        total_amount=quantity * price,
        status=TradeStatus.open,
        admin_approval=ApprovalState.pending,
    )
    db.add(trade)
    await db.flush()
    logger.info("Trade %s created for user %s: %s %s %s @ %s",
                trade.id, user_id, side.value, quantity, symbol, price)
    return trade


async def list_trades(db: AsyncSession, user_id: int, limit: Optional[int] = 50) -> List[Trade]:
    query = (
        select(Trade)
        .where(Trade.user_id == user_id)
        .order_by(desc(Trade.created_at), desc(Trade.id))
    )
    if limit:
        query = query.limit(limit)
    return list(await db.scalars(query))


async def list_positions(db: AsyncSession, user_id: int) -> List[Trade]:
    """Approved or executed trades that have not been closed yet."""
    return list(await db.scalars(
        select(Trade)
        .where(
            Trade.user_id == user_id,
            Trade.status.in_(OPEN_POSITION),
        )
        .order_by(desc(Trade.created_at), desc(Trade.id))
    ))


async def close_trade(db: AsyncSession, user_id: int, trade_id: int) -> Trade:
    """Close an approved position and realize its P&L into the portfolio.

    The close is a conditional UPDATE on the position still being open, so
    two overlapping close requests settle the P&L once.
    """
    result = await db.execute(
        update(Trade)
        .where(
            Trade.id == trade_id,
            Trade.user_id == user_id,
            Trade.admin_approval == ApprovalState.approved,
            Trade.status.in_(OPEN_POSITION),
        )
        .values(status=TradeStatus.closed, closed_at=datetime.now(timezone.utc), updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    trade = await db.get(Trade, trade_id, populate_existing=True)
    if result.rowcount == 0:
        if not trade or trade.user_id != user_id:
            raise NotFoundError("Trade", trade_id)
        if trade.status == TradeStatus.closed:
            raise InvalidTransitionError("Trade", trade_id, "closed")
        raise InvalidTransitionError("Trade", trade_id, trade.admin_approval.value)

    if trade.profit_loss:
        await adjust_balance(db, user_id, Decimal(str(trade.profit_loss)), AdjustmentType.profit)
    logger.info("Trade %s closed by user %s (P&L %s)", trade_id, user_id, trade.profit_loss)
    return trade


async def set_trade_profit(
    db: AsyncSession,
    trade_id: int,
    profit_loss: Decimal,
    note: Optional[str] = None,
) -> Trade:
    """Set a trade's P&L figure; it reaches the ledger when the trade closes."""
    values = {"profit_loss": Decimal(profit_loss), "updated_at": func.now()}
    if note:
        values["notes"] = note
    result = await db.execute(
        update(Trade)
        .where(Trade.id == trade_id, Trade.status != TradeStatus.closed)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    trade = await db.get(Trade, trade_id, populate_existing=True)
    if result.rowcount == 0:
        if not trade:
            raise NotFoundError("Trade", trade_id)
        raise InvalidTransitionError("Trade", trade_id, "closed")
    return trade
