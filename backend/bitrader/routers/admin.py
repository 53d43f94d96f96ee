import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.database import get_db
from bitrader.core.deps import require_admin, ADMIN_COOKIE
from bitrader.core.errors import NotFoundError
from bitrader.core.security import (
    verify_admin_password, hash_admin_password, create_access_token, ADMIN_SCOPE,
)
from bitrader.models.user import User, AdminUser
from bitrader.models.trade import Trade, ApprovalState
from bitrader.models.deposit import DepositStatus, CryptoAddress
from bitrader.models.admin import WebsiteSetting
from bitrader.routers.auth import set_session_cookie, clear_session_cookie
from bitrader.schemas.auth import (
    AdminLoginRequest, AdminSessionResponse, AdminOut, ChangePasswordRequest, UserOut,
)
from bitrader.schemas.common import MessageResponse
from bitrader.schemas.trade import (
    AdminTradeOut, TradeOut, ApproveRequest, RejectRequest, TradeProfitRequest,
    BulkApproveRequest, BulkApproveResponse,
)
from bitrader.schemas.ledger import AdjustBalanceRequest, BalanceAdjustmentOut
from bitrader.schemas.deposit import (
    DepositRequestOut, CryptoAddressOut, CryptoAddressCreate, CryptoAddressUpdate,
)
from bitrader.schemas.admin import (
    UserStatusRequest, SettingCreate, SettingUpdate, SettingOut, AdminLogOut,
    UserDetailsOut, PlatformStatsOut,
)
from bitrader.schemas.algorithm import AlgorithmCreate, AlgorithmOut
from bitrader.services import algorithms, approval, deposits, stats
from bitrader.services.audit import log_admin_activity, list_admin_logs, list_user_activity
from bitrader.services.ledger import adjust_balance
from bitrader.services.trading import set_trade_profit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ──────────────────────────────────────────────
# Session
# ──────────────────────────────────────────────

@router.post("/login", response_model=AdminSessionResponse)
async def admin_login(
    body: AdminLoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    admin = await db.scalar(select(AdminUser).where(AdminUser.email == body.email.strip().lower()))
    if not admin or not verify_admin_password(body.password, admin.password_hash):
        logger.warning("Failed admin login for %r", body.email)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    if not admin.is_active:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Admin account is disabled")

    admin.last_login_at = datetime.now(timezone.utc)
    log_admin_activity(db, admin.id, "LOGIN", "ADMIN_USER", admin.id, None, request)
    await db.commit()
    await db.refresh(admin)

    token = create_access_token(admin.id, ADMIN_SCOPE)
    set_session_cookie(response, ADMIN_COOKIE, token)
    return AdminSessionResponse(access_token=token, admin=AdminOut.model_validate(admin))


@router.post("/logout", response_model=MessageResponse)
async def admin_logout(
    request: Request,
    response: Response,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    log_admin_activity(db, admin.id, "LOGOUT", "ADMIN_USER", admin.id, None, request)
    await db.commit()
    clear_session_cookie(response, ADMIN_COOKIE)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=AdminOut)
async def admin_user(admin: AdminUser = Depends(require_admin)):
    return admin


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not verify_admin_password(body.current_password, admin.password_hash):
        raise HTTPException(400, "Current password is incorrect")
    admin.password_hash = hash_admin_password(body.new_password)
    log_admin_activity(db, admin.id, "CHANGE_PASSWORD", "ADMIN_USER", admin.id, None, request)
    await db.commit()
    return MessageResponse(message="Password changed successfully")


# ──────────────────────────────────────────────
# Trades
# ──────────────────────────────────────────────

async def _trades_with_owner(db: AsyncSession, pending_only: bool = False) -> List[AdminTradeOut]:
    query = (
        select(Trade, User.username, User.email)
        .join(User, User.id == Trade.user_id)
        .order_by(desc(Trade.created_at), desc(Trade.id))
    )
    if pending_only:
        query = query.where(Trade.admin_approval == ApprovalState.pending)
    rows = await db.execute(query)
    return [
        AdminTradeOut.model_validate(trade).model_copy(update={"username": username, "email": email})
        for trade, username, email in rows
    ]


@router.get("/trades", response_model=List[AdminTradeOut])
async def all_trades(admin: AdminUser = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await _trades_with_owner(db)


@router.get("/trades/pending", response_model=List[AdminTradeOut])
async def pending_trades(admin: AdminUser = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await _trades_with_owner(db, pending_only=True)


@router.patch("/trades/{trade_id}/approve", response_model=TradeOut)
async def approve_trade(
    trade_id: int,
    request: Request,
    body: Optional[ApproveRequest] = None,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    trade = await approval.approve_trade(
        db, trade_id, admin, notes=body.notes if body else None, request=request,
    )
    await db.commit()
    return trade


@router.patch("/trades/{trade_id}/reject", response_model=TradeOut)
async def reject_trade(
    trade_id: int,
    request: Request,
    body: Optional[RejectRequest] = None,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    trade = await approval.reject_trade(
        db, trade_id, admin,
        reason=body.rejection_reason if body else None,
        notes=body.notes if body else None,
        request=request,
    )
    await db.commit()
    return trade


@router.patch("/trades/{trade_id}/profit", response_model=TradeOut)
async def update_trade_profit(
    trade_id: int,
    body: TradeProfitRequest,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    trade = await set_trade_profit(db, trade_id, body.profit_amount, body.note)
    log_admin_activity(db, admin.id, "SET_TRADE_PROFIT", "TRADE", trade.id, {
        "userId": trade.user_id,
        "profitAmount": str(body.profit_amount),
    }, request)
    await db.commit()
    await db.refresh(trade)
    return trade


@router.post("/user/{user_id}/trades/approve", response_model=BulkApproveResponse)
@router.post("/users/{user_id}/trades/approve", response_model=BulkApproveResponse)
async def bulk_approve(
    user_id: int,
    body: BulkApproveRequest,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await approval.bulk_approve_trades(db, user_id, body.trade_ids, admin, request)
    await db.commit()
    return result


# ──────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────

@router.get("/users", response_model=List[UserOut])
async def list_users(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return list(await db.scalars(
        select(User).order_by(desc(User.created_at), desc(User.id)).limit(limit).offset(offset)
    ))


@router.get("/users/{user_id}", response_model=UserDetailsOut)
async def get_user_details(
    user_id: int,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    details = await stats.user_details(db, user_id)
    if details is None:
        raise NotFoundError("User", user_id)
    return details


@router.patch("/users/{user_id}/status", response_model=UserOut)
async def update_user_status(
    user_id: int,
    body: UserStatusRequest,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    user.is_active = body.is_active
    log_admin_activity(db, admin.id, "UPDATE_USER_STATUS", "USER", user.id,
                       {"isActive": body.is_active}, request)
    await db.commit()
    await db.refresh(user)
    return user


@router.patch("/users/{user_id}/balance", response_model=BalanceAdjustmentOut)
async def update_user_balance(
    user_id: int,
    body: AdjustBalanceRequest,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    portfolio = await adjust_balance(db, user_id, body.amount, body.type)
    log_admin_activity(db, admin.id, "ADJUST_BALANCE", "PORTFOLIO", user_id, {
        "type": body.type.value,
        "amount": str(body.amount),
        "newBalance": str(portfolio.total_balance),
    }, request)
    await db.commit()
    return BalanceAdjustmentOut(
        user_id=user_id,
        type=body.type,
        amount=float(body.amount),
        new_balance=float(portfolio.total_balance),
        total_profit_loss=float(portfolio.total_profit_loss),
    )


@router.get("/users/{user_id}/activity-log", response_model=List[AdminLogOut])
async def user_activity_log(
    user_id: int,
    limit: int = Query(50, ge=1, le=500),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_activity(db, user_id, limit)


# ──────────────────────────────────────────────
# Deposit requests
# ──────────────────────────────────────────────

@router.get("/deposit-requests", response_model=List[DepositRequestOut])
async def list_deposit_requests(
    status: Optional[DepositStatus] = None,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await deposits.list_deposit_requests(db, status)


@router.patch("/deposit-requests/{deposit_id}/approve", response_model=DepositRequestOut)
async def approve_deposit(
    deposit_id: int,
    request: Request,
    body: Optional[ApproveRequest] = None,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    deposit = await approval.approve_deposit(
        db, deposit_id, admin, notes=body.notes if body else None, request=request,
    )
    await db.commit()
    return deposit


@router.patch("/deposit-requests/{deposit_id}/reject", response_model=DepositRequestOut)
async def reject_deposit(
    deposit_id: int,
    body: RejectRequest,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    deposit = await approval.reject_deposit(
        db, deposit_id, admin, body.rejection_reason, notes=body.notes, request=request,
    )
    await db.commit()
    return deposit


# ──────────────────────────────────────────────
# Website settings
# ──────────────────────────────────────────────

@router.get("/settings", response_model=List[SettingOut])
async def list_settings(admin: AdminUser = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return list(await db.scalars(
        select(WebsiteSetting).order_by(WebsiteSetting.category, WebsiteSetting.key)
    ))


@router.post("/settings", response_model=SettingOut, status_code=201)
async def create_setting(
    body: SettingCreate,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if await db.scalar(select(WebsiteSetting).where(WebsiteSetting.key == body.key)):
        raise HTTPException(400, f"Setting {body.key} already exists")
    setting = WebsiteSetting(**body.model_dump(), updated_by=admin.id)
    db.add(setting)
    await db.flush()
    log_admin_activity(db, admin.id, "CREATE_SETTING", "WEBSITE_SETTING", setting.key,
                       {"value": body.value}, request)
    await db.commit()
    await db.refresh(setting)
    return setting


@router.put("/settings/{key}", response_model=SettingOut)
async def update_setting(
    key: str,
    body: SettingUpdate,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    setting = await db.scalar(select(WebsiteSetting).where(WebsiteSetting.key == key))
    if not setting:
        raise NotFoundError("Setting", key)
    previous = setting.value
    for k, v in body.model_dump(exclude_none=True).items():
        setattr(setting, k, v)
    setting.updated_by = admin.id
    log_admin_activity(db, admin.id, "UPDATE_SETTING", "WEBSITE_SETTING", key,
                       {"from": previous, "to": setting.value}, request)
    await db.commit()
    await db.refresh(setting)
    return setting


# ──────────────────────────────────────────────
# Receiving addresses
# ──────────────────────────────────────────────

@router.get("/crypto-addresses", response_model=List[CryptoAddressOut])
async def list_crypto_addresses(admin: AdminUser = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return list(await db.scalars(select(CryptoAddress).order_by(CryptoAddress.symbol, CryptoAddress.id)))


@router.post("/crypto-addresses", response_model=CryptoAddressOut, status_code=201)
async def create_crypto_address(
    body: CryptoAddressCreate,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    address = CryptoAddress(
        symbol=body.symbol.strip().upper(),
        name=body.name,
        address=body.address.strip(),
        network=body.network,
        is_active=True,
        created_by=admin.id,
    )
    db.add(address)
    await db.flush()
    log_admin_activity(db, admin.id, "CREATE_CRYPTO_ADDRESS", "CRYPTO_ADDRESS", address.id,
                       {"symbol": address.symbol, "network": address.network}, request)
    await db.commit()
    await db.refresh(address)
    return address


@router.put("/crypto-addresses/{address_id}", response_model=CryptoAddressOut)
async def update_crypto_address(
    address_id: int,
    body: CryptoAddressUpdate,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    address = await db.get(CryptoAddress, address_id)
    if not address:
        raise NotFoundError("Crypto address", address_id)
    changes = body.model_dump(exclude_none=True)
    if "symbol" in changes:
        changes["symbol"] = changes["symbol"].strip().upper()
    for k, v in changes.items():
        setattr(address, k, v)
    log_admin_activity(db, admin.id, "UPDATE_CRYPTO_ADDRESS", "CRYPTO_ADDRESS", address.id,
                       {k: str(v) for k, v in changes.items()}, request)
    await db.commit()
    await db.refresh(address)
    return address


@router.delete("/crypto-addresses/{address_id}", response_model=MessageResponse)
async def delete_crypto_address(
    address_id: int,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Retire an address. The row stays so past deposit requests still point at it."""
    address = await db.get(CryptoAddress, address_id)
    if not address:
        raise NotFoundError("Crypto address", address_id)
    address.is_active = False
    log_admin_activity(db, admin.id, "DELETE_CRYPTO_ADDRESS", "CRYPTO_ADDRESS", address.id,
                       {"symbol": address.symbol}, request)
    await db.commit()
    return MessageResponse(message="Crypto address deactivated")


# ──────────────────────────────────────────────
# Algorithms
# ──────────────────────────────────────────────

@router.get("/algorithms", response_model=List[AlgorithmOut])
async def list_all_algorithms(admin: AdminUser = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await algorithms.list_algorithms(db, active_only=False)


@router.post("/algorithms", response_model=AlgorithmOut, status_code=201)
async def create_algorithm(
    body: AlgorithmCreate,
    request: Request,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    algorithm = await algorithms.create_algorithm(
        db, admin, body.name, body.type, body.description, body.active, request,
    )
    await db.commit()
    await db.refresh(algorithm)
    return algorithm


# ──────────────────────────────────────────────
# Audit log and platform stats
# ──────────────────────────────────────────────

@router.get("/logs", response_model=List[AdminLogOut])
async def admin_logs(
    limit: int = Query(100, ge=1, le=1000),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_admin_logs(db, limit=limit)


@router.get("/stats", response_model=PlatformStatsOut)
async def platform_stats(admin: AdminUser = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await stats.platform_stats(db)
