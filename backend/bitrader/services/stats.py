"""Account analytics for the admin user view and platform-wide counters."""
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from bitrader.models.user import User
from bitrader.models.wallet import Portfolio, UserWallet, StockHolding
from bitrader.models.trade import Trade, TradeStatus, ApprovalState
from bitrader.models.deposit import DepositRequest, DepositStatus
from bitrader.services.deposits import list_user_deposits

TWO_PLACES = Decimal("0.01")


def calc_trade_analytics(trades: Iterable[Trade]) -> dict:
    """Win rate, realized P&L and average size over ``trades``."""
    trades = list(trades)
    total = len(trades)
    pnls = [Decimal(str(t.profit_loss)) for t in trades if t.profit_loss is not None]
    profitable = sum(1 for p in pnls if p > 0)
    total_pnl = sum(pnls, Decimal("0"))
    volume = sum((Decimal(str(t.total_amount or 0)) for t in trades), Decimal("0"))

    return {
        "total_trades": total,
        "profitable_trades": profitable,
        "win_rate": (Decimal(profitable) / total * 100).quantize(TWO_PLACES) if total else Decimal("0.00"),
        "total_profit_loss": total_pnl.quantize(TWO_PLACES),
        "avg_trade_size": (volume / total).quantize(TWO_PLACES) if total else Decimal("0.00"),
    }


async def user_details(db: AsyncSession, user_id: int) -> Optional[dict]:
    user = await db.get(User, user_id)
    if not user:
        return None

    portfolio = await db.scalar(select(Portfolio).where(Portfolio.user_id == user_id))
    recent = list(await db.scalars(
        select(Trade)
        .where(Trade.user_id == user_id)
        .order_by(desc(Trade.created_at), desc(Trade.id))
        .limit(10)
    ))
    wallets = list(await db.scalars(select(UserWallet).where(UserWallet.user_id == user_id)))
    holdings = list(await db.scalars(select(StockHolding).where(StockHolding.user_id == user_id)))
    deposits = await list_user_deposits(db, user_id)

    wallet_value = sum((Decimal(str(w.usd_value or 0)) for w in wallets), Decimal("0"))
    stock_value = sum((Decimal(str(h.market_value or 0)) for h in holdings), Decimal("0"))

    return {
        "user": user,
        "portfolio": portfolio,
        "total_value": wallet_value + stock_value,
        "buying_power": wallet_value,
        "trades": recent,
        "wallets": wallets,
        "stock_holdings": holdings,
        "deposit_requests": deposits,
        "analytics": calc_trade_analytics(recent),
    }


async def platform_stats(db: AsyncSession) -> dict:
    today = datetime.combine(datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc)

    async def count(query) -> int:
        return (await db.scalar(query)) or 0

    return {
        "total_users": await count(select(func.count(User.id))),
        "users_registered_today": await count(
            select(func.count(User.id)).where(User.created_at >= today)
        ),
        "users_active_today": await count(
            select(func.count(User.id)).where(User.last_login_at >= today)
        ),
        "total_trades": await count(select(func.count(Trade.id))),
        "pending_trades": await count(
            select(func.count(Trade.id)).where(Trade.admin_approval == ApprovalState.pending)
        ),
        "active_trades": await count(
            select(func.count(Trade.id)).where(
                Trade.status.in_((TradeStatus.approved, TradeStatus.executed))
            )
        ),
        "pending_deposits": await count(
            select(func.count(DepositRequest.id)).where(DepositRequest.status == DepositStatus.pending)
        ),
        "total_balance": Decimal(str(
            await db.scalar(select(func.coalesce(func.sum(Portfolio.total_balance), 0))) or 0
        )),
    }
