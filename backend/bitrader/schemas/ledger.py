from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field
from bitrader.services.ledger import AdjustmentType
from bitrader.schemas.common import CamelModel


class PortfolioOut(CamelModel):
    id: int
    user_id: int
    total_balance: float
    total_profit_loss: float
    today_pl: Optional[float] = None
    win_rate: Optional[float] = None
    active_algorithms: Optional[int] = None
    updated_at: Optional[datetime] = None


class WalletOut(CamelModel):
    id: int
    symbol: str
    name: Optional[str] = None
    balance: float
    usd_value: float
    wallet_type: Optional[str] = None
    wallet_address: Optional[str] = None
    is_connected: Optional[bool] = None
    last_sync_at: Optional[datetime] = None


class StockHoldingOut(CamelModel):
    id: int
    symbol: str
    name: Optional[str] = None
    shares: float
    avg_cost_basis: Optional[float] = None
    current_price: Optional[float] = None
    market_value: Optional[float] = None
    total_return: Optional[float] = None
    return_percentage: Optional[float] = None


class ConnectWalletRequest(CamelModel):
    wallet_type: str = Field(min_length=1, max_length=50)
    wallet_address: str = Field(min_length=1, max_length=255)


class AdjustBalanceRequest(CamelModel):
    amount: Decimal = Field(ge=0)
    type: AdjustmentType


class BalanceAdjustmentOut(CamelModel):
    user_id: int
    type: AdjustmentType
    amount: float
    new_balance: float
    total_profit_loss: float
