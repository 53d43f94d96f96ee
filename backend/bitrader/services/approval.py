"""
Admin approval workflow for trades and deposit requests.

Both records follow the same machine: ``pending`` -> ``approved`` |
``rejected``, with both targets terminal. The move out of ``pending`` is a
conditional UPDATE guarded on the current state, so a record changes state
at most once even when two admins act on it at the same moment, and the
ledger effect of an approved deposit is applied at most once.
"""
import enum
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from fastapi import Request
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.core.errors import NotFoundError, InvalidTransitionError, ValidationError
from bitrader.models.user import AdminUser
from bitrader.models.trade import Trade, TradeStatus, ApprovalState
from bitrader.models.deposit import DepositRequest, DepositStatus
from bitrader.services.audit import log_admin_activity
from bitrader.services.ledger import credit_wallet

logger = logging.getLogger(__name__)


class BulkOutcome(str, enum.Enum):
    approved = "approved"
    not_found = "not_found"
    not_pending = "not_pending"


async def _transition(
    db: AsyncSession,
    model,
    state_column,
    pending,
    record_id: int,
    label: str,
    values: dict,
    owner_id: Optional[int] = None,
):
    conditions = [model.id == record_id, state_column == pending]
    if owner_id is not None:
        conditions.append(model.user_id == owner_id)

    result = await db.execute(
        update(model)
        .where(*conditions)
        .values(updated_at=func.now(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        record = await db.get(model, record_id, populate_existing=True)
        if record is None or (owner_id is not None and record.user_id != owner_id):
            raise NotFoundError(label, record_id)
        state = getattr(record, state_column.key)
        raise InvalidTransitionError(label, record_id, state.value)

    return await db.scalar(
        select(model).where(model.id == record_id).execution_options(populate_existing=True)
    )


def _decision(admin: AdminUser, notes: Optional[str]) -> dict:
    values = {"approved_by": admin.id, "approved_at": datetime.now(timezone.utc)}
    if notes:
        values["notes"] = notes
    return values


# ──────────────────────────────────────────────
# Trades
# ──────────────────────────────────────────────

async def approve_trade(
    db: AsyncSession,
    trade_id: int,
    admin: AdminUser,
    notes: Optional[str] = None,
    request: Optional[Request] = None,
    owner_id: Optional[int] = None,
) -> Trade:
    values = _decision(admin, notes)
    values.update(admin_approval=ApprovalState.approved, status=TradeStatus.approved)
    trade = await _transition(
        db, Trade, Trade.admin_approval, ApprovalState.pending,
        trade_id, "Trade", values, owner_id=owner_id,
    )
    log_admin_activity(db, admin.id, "APPROVE_TRADE", "TRADE", trade.id, {
        "userId": trade.user_id,
        "symbol": trade.symbol,
        "totalAmount": str(trade.total_amount),
    }, request)
    return trade


async def reject_trade(
    db: AsyncSession,
    trade_id: int,
    admin: AdminUser,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    request: Optional[Request] = None,
) -> Trade:
    values = {"admin_approval": ApprovalState.rejected, "status": TradeStatus.rejected}
    if reason:
        values["rejection_reason"] = reason
    if notes:
        values["notes"] = notes
    trade = await _transition(
        db, Trade, Trade.admin_approval, ApprovalState.pending, trade_id, "Trade", values,
    )
    log_admin_activity(db, admin.id, "REJECT_TRADE", "TRADE", trade.id, {
        "userId": trade.user_id,
        "rejectionReason": reason,
    }, request)
    return trade


async def bulk_approve_trades(
    db: AsyncSession,
    user_id: int,
    trade_ids: Iterable[int],
    admin: AdminUser,
    request: Optional[Request] = None,
) -> dict:
    """Approve each of ``trade_ids`` that belongs to ``user_id``.

    Items are handled one by one; an id that is unknown, owned by someone
    else or no longer pending is reported and skipped, never raised.
    """
    results = []
    approved = []
    for trade_id in trade_ids:
        try:
            trade = await approve_trade(db, trade_id, admin, request=request, owner_id=user_id)
        except NotFoundError:
            logger.warning("Bulk approve: trade %s not found for user %s", trade_id, user_id)
            results.append({"id": trade_id, "outcome": BulkOutcome.not_found})
            continue
        except InvalidTransitionError as e:
            logger.warning("Bulk approve: trade %s skipped (%s)", trade_id, e.state)
            results.append({"id": trade_id, "outcome": BulkOutcome.not_pending})
            continue
        approved.append(trade)
        results.append({"id": trade_id, "outcome": BulkOutcome.approved})

    logger.info("Bulk approved %d/%d trades for user %s", len(approved), len(results), user_id)
    return {"approved_count": len(approved), "results": results, "trades": approved}


# ──────────────────────────────────────────────
# Deposit requests
# ──────────────────────────────────────────────

async def approve_deposit(
    db: AsyncSession,
    deposit_id: int,
    admin: AdminUser,
    notes: Optional[str] = None,
    request: Optional[Request] = None,
) -> DepositRequest:
    """Approve a deposit and credit the user's wallet in the same transaction."""
    values = _decision(admin, notes)
    values["status"] = DepositStatus.approved
    deposit = await _transition(
        db, DepositRequest, DepositRequest.status, DepositStatus.pending,
        deposit_id, "Deposit request", values,
    )
    wallet = await credit_wallet(
        db, deposit.user_id, deposit.crypto_type, deposit.amount, deposit.usd_value or 0,
    )
    log_admin_activity(db, admin.id, "APPROVE_DEPOSIT", "DEPOSIT_REQUEST", deposit.id, {
        "userId": deposit.user_id,
        "cryptoType": deposit.crypto_type,
        "amount": str(deposit.amount),
        "usdValue": str(deposit.usd_value),
        "newWalletBalance": str(wallet.balance),
    }, request)
    return deposit


async def reject_deposit(
    db: AsyncSession,
    deposit_id: int,
    admin: AdminUser,
    reason: Optional[str],
    notes: Optional[str] = None,
    request: Optional[Request] = None,
) -> DepositRequest:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Rejection reason is required")

    values = {"status": DepositStatus.rejected, "rejection_reason": reason}
    if notes:
        values["notes"] = notes
    deposit = await _transition(
        db, DepositRequest, DepositRequest.status, DepositStatus.pending,
        deposit_id, "Deposit request", values,
    )
    log_admin_activity(db, admin.id, "REJECT_DEPOSIT", "DEPOSIT_REQUEST", deposit.id, {
        "userId": deposit.user_id,
        "rejectionReason": reason,
    }, request)
    return deposit
