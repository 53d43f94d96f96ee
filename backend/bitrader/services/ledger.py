"""
Ledger bookkeeping: portfolio balances, crypto wallets and stock holdings.

Balance changes are issued as single ``UPDATE ... SET col = col + :amount``
statements so two concurrent adjustments of the same row both land; nothing
here reads a balance into Python, changes it and writes it back.
"""
import enum
import logging
from decimal import Decimal
from typing import List

from sqlalchemy import select, update, case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.config import settings
from bitrader.core.errors import NotFoundError, ValidationError
from bitrader.models.wallet import Portfolio, UserWallet, StockHolding

logger = logging.getLogger(__name__)


class AdjustmentType(str, enum.Enum):
    add = "add"
    remove = "remove"
    profit = "profit"


DEMO_PORTFOLIO = {
    "total_balance": Decimal("125849.32"),
    "today_pl": Decimal("2473.85"),
    "win_rate": Decimal("78.4"),
    "active_algorithms": 4,
}

DEFAULT_WALLETS = [
    ("BTC", "Bitcoin"),
    ("ETH", "Ethereum"),
    ("SOL", "Solana"),
    ("USDT", "Tether"),
    ("USDC", "USD Coin"),
]

DEFAULT_STOCKS = [
    ("AAPL", "Apple Inc."),
    ("TSLA", "Tesla Inc."),
    ("GOOGL", "Alphabet Inc."),
    ("MSFT", "Microsoft Corp."),
]

ASSET_NAMES = dict(DEFAULT_WALLETS)


async def get_portfolio(db: AsyncSession, user_id: int, refresh: bool = False):
    query = select(Portfolio).where(Portfolio.user_id == user_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    return await db.scalar(query)


async def get_or_create_portfolio(db: AsyncSession, user_id: int) -> Portfolio:
    portfolio = await get_portfolio(db, user_id)
    if portfolio:
        return portfolio

    seed = DEMO_PORTFOLIO if settings.SEED_DEMO_PORTFOLIO else {}
    portfolio = Portfolio(
        user_id=user_id,
        total_balance=seed.get("total_balance", Decimal("0")),
        total_profit_loss=Decimal("0"),
        today_pl=seed.get("today_pl", Decimal("0")),
        win_rate=seed.get("win_rate", Decimal("0")),
        active_algorithms=seed.get("active_algorithms", 0),
    )
    db.add(portfolio)
    await db.flush()
    logger.info("Created portfolio for user %s", user_id)
    return portfolio


async def adjust_balance(
    db: AsyncSession,
    user_id: int,
    amount: Decimal,
    kind: AdjustmentType,
) -> Portfolio:
    """Apply an add / remove / profit adjustment to a user's portfolio.

    ``remove`` floors the balance at zero instead of rejecting an
    over-withdrawal. ``profit`` moves both the balance and the running
    profit total; a negative profit (a realized loss) is allowed and is
    floored at zero on the balance side only.
    """
    amount = Decimal(amount)
    if kind in (AdjustmentType.add, AdjustmentType.remove) and amount < 0:
        raise ValidationError("Amount must not be negative")

    if kind == AdjustmentType.remove:
        remaining = Portfolio.total_balance - amount
        values = {"total_balance": case((remaining < 0, 0), else_=remaining)}
    elif kind == AdjustmentType.profit:
        credited = Portfolio.total_balance + amount
        values = {
            "total_balance": case((credited < 0, 0), else_=credited),
            "total_profit_loss": Portfolio.total_profit_loss + amount,
        }
    else:
        values = {"total_balance": Portfolio.total_balance + amount}

    result = await db.execute(
        update(Portfolio)
        .where(Portfolio.user_id == user_id)
        .values(updated_at=func.now(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Portfolio")

    portfolio = await get_portfolio(db, user_id, refresh=True)
    logger.info(
        "Balance %s %s for user %s -> %s", kind.value, amount, user_id, portfolio.total_balance,
    )
    return portfolio


async def _find_wallet(db: AsyncSession, user_id: int, symbol: str):
    return await db.scalar(
        select(UserWallet).where(UserWallet.user_id == user_id, UserWallet.symbol == symbol)
    )


async def get_or_create_wallet(db: AsyncSession, user_id: int, symbol: str) -> UserWallet:
    symbol = symbol.upper()
    wallet = await _find_wallet(db, user_id, symbol)
    if wallet is not None:
        return wallet

    try:
        async with db.begin_nested():
            wallet = UserWallet(
                user_id=user_id,
                symbol=symbol,
                name=ASSET_NAMES.get(symbol, symbol),
                balance=Decimal("0"),
                usd_value=Decimal("0"),
                is_connected=False,
            )
            db.add(wallet)
    except IntegrityError:
        # opened by a concurrent transaction since the lookup above
        logger.info("Wallet %s for user %s already opened, reusing it", symbol, user_id)
        wallet = await _find_wallet(db, user_id, symbol)
    return wallet


async def credit_wallet(
    db: AsyncSession,
    user_id: int,
    symbol: str,
    amount: Decimal,
    usd_amount: Decimal = Decimal("0"),
) -> UserWallet:
    """Add ``amount`` units (worth ``usd_amount``) to the user's ``symbol`` wallet."""
    wallet = await get_or_create_wallet(db, user_id, symbol)
    await db.execute(
        update(UserWallet)
        .where(UserWallet.id == wallet.id)
        .values(
            balance=UserWallet.balance + Decimal(amount),
            usd_value=UserWallet.usd_value + Decimal(usd_amount),
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(wallet)
    logger.info("Credited %s %s to user %s wallet", amount, wallet.symbol, user_id)
    return wallet


async def ensure_wallets(db: AsyncSession, user_id: int) -> List[UserWallet]:
    """Return the user's wallets, opening the default set on first access."""
    wallets = list(await db.scalars(
        select(UserWallet).where(UserWallet.user_id == user_id).order_by(UserWallet.id)
    ))
    if wallets:
        return wallets
    for symbol, name in DEFAULT_WALLETS:
        db.add(UserWallet(
            user_id=user_id, symbol=symbol, name=name,
            balance=Decimal("0"), usd_value=Decimal("0"), is_connected=False,
        ))
    await db.flush()
    return list(await db.scalars(
        select(UserWallet).where(UserWallet.user_id == user_id).order_by(UserWallet.id)
    ))


async def ensure_stock_holdings(db: AsyncSession, user_id: int) -> List[StockHolding]:
    holdings = list(await db.scalars(
        select(StockHolding).where(StockHolding.user_id == user_id).order_by(StockHolding.id)
    ))
    if holdings:
        return holdings
    for symbol, name in DEFAULT_STOCKS:
        db.add(StockHolding(user_id=user_id, symbol=symbol, name=name, shares=Decimal("0")))
    await db.flush()
    return list(await db.scalars(
        select(StockHolding).where(StockHolding.user_id == user_id).order_by(StockHolding.id)
    ))
