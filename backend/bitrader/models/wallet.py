from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bitrader.database import Base

class Portfolio(Base):
    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    total_balance = Column(Numeric(15, 2), nullable=False, default=0)
    total_profit_loss = Column(Numeric(15, 2), nullable=False, default=0)
    today_pl = Column(Numeric(15, 2), default=0)
    win_rate = Column(Numeric(5, 2), default=0)
    active_algorithms = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="portfolio")

class UserWallet(Base):
    __tablename__ = "user_wallets"
    __table_args__ = (UniqueConstraint("user_id", "symbol", name="uq_user_wallets_user_symbol"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    symbol = Column(String(20), nullable=False)
    name = Column(String(100))
    balance = Column(Numeric(precision=20, scale=8), nullable=False, default=0)
    usd_value = Column(Numeric(15, 2), nullable=False, default=0)
    wallet_type = Column(String(50), nullable=True)
    wallet_address = Column(String(255), nullable=True)
    is_connected = Column(Boolean, default=False)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="wallets")

class StockHolding(Base):
    __tablename__ = "stock_holdings"
    __table_args__ = (UniqueConstraint("user_id", "symbol", name="uq_stock_holdings_user_symbol"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    symbol = Column(String(20), nullable=False)
    name = Column(String(100))
    shares = Column(Numeric(precision=20, scale=6), nullable=False, default=0)
    avg_cost_basis = Column(Numeric(15, 4), default=0)
    current_price = Column(Numeric(15, 4), default=0)
    market_value = Column(Numeric(15, 2), default=0)
    total_return = Column(Numeric(15, 2), default=0)
    return_percentage = Column(Numeric(7, 2), default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="stock_holdings")
