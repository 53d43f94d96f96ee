import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.config import settings
from bitrader.database import get_db
from bitrader.core.deps import get_current_user, client_ip, USER_COOKIE, ADMIN_COOKIE
from bitrader.core.security import (
    hash_password, verify_password, password_needs_rehash, create_access_token, ADMIN_SCOPE,
)
from bitrader.models.user import User, AdminUser
from bitrader.schemas.auth import (
    RegisterRequest, LoginRequest, SessionResponse, CurrentUserOut, UserOut,
)
from bitrader.schemas.common import MessageResponse
from bitrader.services.audit import log_admin_activity
from bitrader.services.ledger import get_or_create_portfolio

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def set_session_cookie(response: Response, name: str, token: str) -> None:
    response.set_cookie(
        name,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, name: str) -> None:
    response.delete_cookie(name, httponly=True, secure=settings.is_production, samesite="lax")


async def find_existing_user(db: AsyncSession, username: str, email: str):
    return await db.scalar(
        select(User).where(or_(User.username == username, User.email == email))
    )


@router.post("/register", response_model=SessionResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    username = body.username.strip()
    email = body.email.lower()
    if await find_existing_user(db, username, email):
        raise HTTPException(400, "Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(body.password),
        is_active=True,
        registration_ip=client_ip(request),
        last_login_at=datetime.now(timezone.utc),
        last_login_ip=client_ip(request),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # lost a race with a concurrent registration of the same name
        await db.rollback()
        raise HTTPException(400, "Username or email already exists")
    await get_or_create_portfolio(db, user.id)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)

    token = create_access_token(user.id)
    set_session_cookie(response, USER_COOKIE, token)
    return SessionResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    identifier = body.username.strip()
    user = await db.scalar(
        select(User).where(or_(User.username == identifier, User.email == identifier.lower()))
    )
    if not user or not verify_password(body.password, user.password_hash):
        logger.warning("Failed login for %r from %s", identifier, client_ip(request))
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    if not user.is_active:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Account is disabled")
    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(body.password)
        logger.info("Upgraded password hash for user %s", user.id)

    user.last_login_at = datetime.now(timezone.utc)
    user.last_login_ip = client_ip(request)

    # the same person may also hold an admin account under this email
    admin = await db.scalar(
        select(AdminUser).where(AdminUser.email == user.email, AdminUser.is_active == True)
    )
    admin_token = None
    if admin:
        admin.last_login_at = user.last_login_at
        admin_token = create_access_token(admin.id, ADMIN_SCOPE)
        log_admin_activity(db, admin.id, "LOGIN", "ADMIN_USER", admin.id,
                           {"via": "user_login"}, request)
        set_session_cookie(response, ADMIN_COOKIE, admin_token)

    await db.commit()
    await db.refresh(user)

    token = create_access_token(user.id)
    set_session_cookie(response, USER_COOKIE, token)
    return SessionResponse(
        access_token=token,
        user=UserOut.model_validate(user),
        is_admin=admin is not None,
        admin_token=admin_token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    clear_session_cookie(response, USER_COOKIE)
    clear_session_cookie(response, ADMIN_COOKIE)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=CurrentUserOut)
async def current_user(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    is_admin = await db.scalar(
        select(AdminUser.id).where(AdminUser.email == user.email, AdminUser.is_active == True)
    )
    out = CurrentUserOut.model_validate(user)
    out.is_admin = is_admin is not None
    return out
