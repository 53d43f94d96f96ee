from datetime import datetime, timezone
from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from bitrader.database import get_db
from bitrader.core.deps import get_current_user
from bitrader.models.user import User
from bitrader.schemas.ledger import PortfolioOut, WalletOut, StockHoldingOut, ConnectWalletRequest
from bitrader.schemas.deposit import CreateDepositRequest, DepositRequestOut, CryptoAddressOut
from bitrader.services import ledger, deposits
from bitrader.services.market_data import get_usd_price

router = APIRouter(prefix="/api", tags=["wallet"])


@router.get("/portfolio", response_model=PortfolioOut)
async def get_portfolio(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    portfolio = await ledger.get_or_create_portfolio(db, user.id)
    await db.commit()
    await db.refresh(portfolio)
    return portfolio


@router.get("/wallets", response_model=List[WalletOut])
async def get_wallets(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Wallets with USD values re-marked against the cached spot price."""
    wallets = await ledger.ensure_wallets(db, user.id)
    for w in wallets:
        if not w.balance:
            continue
        price = await get_usd_price(w.symbol)
        if price is not None:
            w.usd_value = (Decimal(w.balance) * price).quantize(Decimal("0.01"))
    await db.commit()
    for w in wallets:
        await db.refresh(w)
    return wallets


@router.post("/wallets/{symbol}/connect", response_model=WalletOut)
async def connect_wallet(
    symbol: str,
    body: ConnectWalletRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    wallet = await ledger.get_or_create_wallet(db, user.id, symbol)
    wallet.wallet_type = body.wallet_type
    wallet.wallet_address = body.wallet_address
    wallet.is_connected = True
    wallet.last_sync_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(wallet)
    return wallet


@router.get("/stocks", response_model=List[StockHoldingOut])
async def get_stocks(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    holdings = await ledger.ensure_stock_holdings(db, user.id)
    await db.commit()
    return holdings


@router.get("/crypto-addresses", response_model=List[CryptoAddressOut])
async def crypto_addresses(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await deposits.list_active_addresses(db)


@router.get("/deposit-requests", response_model=List[DepositRequestOut])
async def my_deposit_requests(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await deposits.list_user_deposits(db, user.id)


@router.post("/deposit-requests", response_model=DepositRequestOut, status_code=201)
async def create_deposit_request(
    body: CreateDepositRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deposit = await deposits.create_deposit_request(
        db, user.id, body.crypto_type, body.amount, body.transaction_hash,
    )
    await db.commit()
    await db.refresh(deposit)
    return deposit
