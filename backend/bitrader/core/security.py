import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from bitrader.config import settings

# End users: scrypt (N=2**14, r=8, p=1); admins: bcrypt
user_pwd_context = CryptContext(schemes=["scrypt"], deprecated="auto", scrypt__rounds=14)
admin_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)

USER_SCOPE = "user"
ADMIN_SCOPE = "admin"

def hash_password(password: str) -> str:
    return user_pwd_context.hash(password)

def _is_legacy_hash(hashed: str) -> bool:
    # "<hex digest>.<hex salt>" rows carried over from the previous deployment
    return not hashed.startswith("$") and hashed.count(".") == 1

def _verify_legacy(plain: str, hashed: str) -> bool:
    digest, salt = hashed.split(".")
    try:
        expected = bytes.fromhex(digest)
    except ValueError:
        return False
    # the salt is used as its hex text, not decoded
    derived = hashlib.scrypt(plain.encode(), salt=salt.encode(), n=2 ** 14, r=8, p=1,
                             dklen=len(expected) or 64)
    return hmac.compare_digest(derived, expected)

def verify_password(plain: str, hashed: str) -> bool:
    if _is_legacy_hash(hashed):
        return _verify_legacy(plain, hashed)
    return user_pwd_context.verify(plain, hashed)

def password_needs_rehash(hashed: str) -> bool:
    return _is_legacy_hash(hashed) or user_pwd_context.needs_update(hashed)

def hash_admin_password(password: str) -> str:
    return admin_pwd_context.hash(password)

def verify_admin_password(plain: str, hashed: str) -> bool:
    return admin_pwd_context.verify(plain, hashed)

def create_access_token(subject_id: int, scope: str = USER_SCOPE) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(subject_id), "scope": scope, "exp": expire}
    return jwt.encode(claims, settings.SESSION_SECRET, settings.ALGORITHM)

def decode_token(token: str) -> Optional[Tuple[int, str]]:
    """Return ``(subject_id, scope)`` for a valid token, else None."""
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.ALGORITHM])
        return int(payload["sub"]), payload.get("scope", USER_SCOPE)
    except (JWTError, KeyError, ValueError):
        return None
