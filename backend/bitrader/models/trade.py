from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from bitrader.database import Base

class AssetType(str, enum.Enum):
    crypto = "crypto"
    stock = "stock"

class TradeSide(str, enum.Enum):
    buy = "buy"
    sell = "sell"

class OrderType(str, enum.Enum):
    market = "market"
    limit = "limit"
    stop = "stop"

class TradeStatus(str, enum.Enum):
    open = "open"
    approved = "approved"
    rejected = "rejected"
    closed = "closed"
    executed = "executed"

class ApprovalState(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

class Trade(Base):
    __tablename__ = "trades"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    symbol = Column(String(20), nullable=False)
    asset_type = Column(Enum(AssetType), nullable=False, default=AssetType.crypto)
    side = Column(Enum(TradeSide), nullable=False)
    order_type = Column(Enum(OrderType), nullable=False, default=OrderType.market)
    quantity = Column(Numeric(precision=20, scale=8), nullable=False)
    price = Column(Numeric(precision=20, scale=8), nullable=False)
    total_amount = Column(Numeric(precision=20, scale=8), nullable=False)
    status = Column(Enum(TradeStatus), nullable=False, default=TradeStatus.open)
    # pending -> approved | rejected, exactly once
    admin_approval = Column(Enum(ApprovalState), nullable=False, default=ApprovalState.pending, index=True)
    profit_loss = Column(Numeric(15, 2), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="trades")
