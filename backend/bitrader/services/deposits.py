import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.core.errors import ValidationError
from bitrader.models.deposit import DepositRequest, DepositStatus, CryptoAddress
from bitrader.services.market_data import usd_value

logger = logging.getLogger(__name__)


async def active_address(db: AsyncSession, symbol: str) -> Optional[CryptoAddress]:
    return await db.scalar(
        select(CryptoAddress)
        .where(CryptoAddress.symbol == symbol.upper(), CryptoAddress.is_active == True)
        .order_by(desc(CryptoAddress.id))
        .limit(1)
    )


async def list_active_addresses(db: AsyncSession) -> List[CryptoAddress]:
    return list(await db.scalars(
        select(CryptoAddress)
        .where(CryptoAddress.is_active == True)
        .order_by(CryptoAddress.symbol)
    ))


async def create_deposit_request(
    db: AsyncSession,
    user_id: int,
    crypto_type: str,
    amount: Decimal,
    transaction_hash: Optional[str] = None,
) -> DepositRequest:
    """Record a user's claim of having sent ``amount`` of ``crypto_type``.

    The claim must target an asset the platform currently accepts. Its USD
    value is fixed at submission time from the spot price, or 0 when no
    price is available.
    """
    crypto_type = (crypto_type or "").strip().upper()
    amount = Decimal(amount)
    if not crypto_type:
        raise ValidationError("Crypto type is required")
    if amount <= 0:
        raise ValidationError("Amount must be positive")

    address = await active_address(db, crypto_type)
    if address is None:
        raise ValidationError(f"Deposits in {crypto_type} are not accepted")

    valued = await usd_value(crypto_type, amount)
    deposit = DepositRequest(
        user_id=user_id,
        crypto_type=crypto_type,
        amount=amount,
        usd_value=valued if valued is not None else Decimal("0"),
        crypto_address_id=address.id,
        transaction_hash=(transaction_hash or "").strip() or None,
        status=DepositStatus.pending,
    )
    db.add(deposit)
    await db.flush()
    logger.info("Deposit request %s: user %s claims %s %s", deposit.id, user_id, amount, crypto_type)
    return deposit


async def list_user_deposits(db: AsyncSession, user_id: int) -> List[DepositRequest]:
    return list(await db.scalars(
        select(DepositRequest)
        .where(DepositRequest.user_id == user_id)
        .order_by(desc(DepositRequest.created_at), desc(DepositRequest.id))
    ))


async def list_deposit_requests(
    db: AsyncSession,
    status: Optional[DepositStatus] = None,
) -> List[DepositRequest]:
    query = select(DepositRequest).order_by(desc(DepositRequest.created_at), desc(DepositRequest.id))
    if status is not None:
        query = query.where(DepositRequest.status == status)
    return list(await db.scalars(query))
