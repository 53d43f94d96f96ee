from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from bitrader.database import Base


class DepositStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class DepositRequest(Base):
    __tablename__ = "deposit_requests"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    crypto_type = Column(String(20), nullable=False)
    amount = Column(Numeric(precision=20, scale=8), nullable=False)
    usd_value = Column(Numeric(15, 2), nullable=False, default=0)
    crypto_address_id = Column(Integer, ForeignKey("crypto_addresses.id"), nullable=True)
    transaction_hash = Column(String(128), nullable=True)
    status = Column(Enum(DepositStatus), nullable=False, default=DepositStatus.pending, index=True)
    rejection_reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="deposit_requests")
    crypto_address = relationship("CryptoAddress")


class CryptoAddress(Base):
    __tablename__ = "crypto_addresses"

    id = Column(Integer, primary_key=True)
    symbol = Column(String(20), nullable=False, index=True)   # "BTC", "ETH", ...
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    network = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
