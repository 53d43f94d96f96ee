from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field
from bitrader.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(CamelModel):
    # username or email
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminLoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    registration_ip: Optional[str] = None
    created_at: Optional[datetime] = None


class CurrentUserOut(UserOut):
    is_admin: bool = False


class AdminOut(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None


class SessionResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
    is_admin: bool = False
    admin_token: Optional[str] = None


class AdminSessionResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminOut
