from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field
from bitrader.models.deposit import DepositStatus
from bitrader.schemas.common import CamelModel


class CreateDepositRequest(CamelModel):
    crypto_type: str = Field(min_length=1, max_length=20)
    amount: Decimal = Field(gt=0)
    transaction_hash: Optional[str] = Field(default=None, max_length=128)


class DepositRequestOut(CamelModel):
    id: int
    user_id: int
    crypto_type: str
    amount: float
    usd_value: float
    crypto_address_id: Optional[int] = None
    transaction_hash: Optional[str] = None
    status: DepositStatus
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CryptoAddressOut(CamelModel):
    id: int
    symbol: str
    name: str
    address: str
    network: Optional[str] = None
    is_active: bool


class CryptoAddressCreate(CamelModel):
    symbol: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    network: Optional[str] = Field(default=None, max_length=50)


class CryptoAddressUpdate(CamelModel):
    symbol: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    network: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None
