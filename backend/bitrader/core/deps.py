"""
Request-scoped authentication.

Regular users and administrators are two independent principals. Each is
carried by its own scoped JWT, read from the ``Authorization`` header first
and from its own cookie second, so a request may hold either, both or none.
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from bitrader.database import get_db
from bitrader.core.security import decode_token, USER_SCOPE, ADMIN_SCOPE
from bitrader.models.user import User, AdminUser

USER_COOKIE = "bitrader_session"
ADMIN_COOKIE = "bitrader_admin"

bearer = HTTPBearer(auto_error=False)


def _resolve_subject(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    cookie_name: str,
    scope: str,
) -> Optional[int]:
    tokens = []
    if credentials:
        tokens.append(credentials.credentials)
    cookie = request.cookies.get(cookie_name)
    if cookie:
        tokens.append(cookie)
    for token in tokens:
        decoded = decode_token(token)
        if decoded and decoded[1] == scope:
            return decoded[0]
    return None


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    user_id = _resolve_subject(request, credentials, USER_COOKIE, USER_SCOPE)
    if user_id is None:
        return None
    user = await db.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    return user


async def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    admin_id = _resolve_subject(request, credentials, ADMIN_COOKIE, ADMIN_SCOPE)
    if admin_id is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Admin authentication required")
    admin = await db.get(AdminUser, admin_id)
    if not admin or not admin.is_active:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Admin access revoked")
    return admin


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
