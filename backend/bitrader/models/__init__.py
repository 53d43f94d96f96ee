from bitrader.models.user import User, AdminUser
from bitrader.models.wallet import Portfolio, UserWallet, StockHolding
from bitrader.models.trade import Trade
from bitrader.models.deposit import DepositRequest, CryptoAddress
from bitrader.models.admin import WebsiteSetting, AdminLog
from bitrader.models.algorithm import Algorithm, PerformanceMetric

__all__ = [
    "User", "AdminUser",
    "Portfolio", "UserWallet", "StockHolding",
    "Trade",
    "DepositRequest", "CryptoAddress",
    "WebsiteSetting", "AdminLog",
    "Algorithm", "PerformanceMetric",
]
