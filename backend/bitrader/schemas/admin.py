from datetime import datetime
from typing import Any, List, Optional
from pydantic import Field
from bitrader.schemas.common import CamelModel
from bitrader.schemas.auth import UserOut
from bitrader.schemas.ledger import PortfolioOut, WalletOut, StockHoldingOut
from bitrader.schemas.trade import TradeOut
from bitrader.schemas.deposit import DepositRequestOut


class UserStatusRequest(CamelModel):
    is_active: bool


class SettingCreate(CamelModel):
    key: str = Field(min_length=1, max_length=100)
    value: Optional[str] = None
    description: Optional[str] = None
    category: str = Field(default="general", min_length=1, max_length=50)


class SettingUpdate(CamelModel):
    value: Optional[str] = None
    description: Optional[str] = None


class SettingOut(CamelModel):
    id: int
    key: str
    value: Optional[str] = None
    description: Optional[str] = None
    category: str
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None


class AdminLogOut(CamelModel):
    id: int
    admin_id: int
    action: str
    resource: str
    resource_id: Optional[str] = None
    details: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None


class TradeAnalytics(CamelModel):
    total_trades: int
    profitable_trades: int
    win_rate: float
    total_profit_loss: float
    avg_trade_size: float


class UserDetailsOut(CamelModel):
    user: UserOut
    portfolio: Optional[PortfolioOut] = None
    total_value: float
    buying_power: float
    trades: List[TradeOut]
    wallets: List[WalletOut]
    stock_holdings: List[StockHoldingOut]
    deposit_requests: List[DepositRequestOut]
    analytics: TradeAnalytics


class PlatformStatsOut(CamelModel):
    total_users: int
    users_registered_today: int
    users_active_today: int
    total_trades: int
    pending_trades: int
    active_trades: int
    pending_deposits: int
    total_balance: float
