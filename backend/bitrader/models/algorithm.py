import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from bitrader.database import Base

class AlgorithmType(str, enum.Enum):
    forex = "forex"
    gold = "gold"
    stocks = "stocks"
    crypto = "crypto"

class Algorithm(Base):
    __tablename__ = "algorithms"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    type = Column(Enum(AlgorithmType), nullable=False)
    description = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class PerformanceMetric(Base):
    __tablename__ = "performance_metrics"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    algorithm_id = Column(Integer, ForeignKey("algorithms.id"), nullable=False)
    sharpe_ratio = Column(Numeric(5, 2), nullable=True)
    max_drawdown = Column(Numeric(5, 2), nullable=True)
    avg_trade_duration = Column(Numeric(10, 2), nullable=True)   # hours
    profit_factor = Column(Numeric(5, 2), nullable=True)
    total_trades = Column(Integer, default=0, nullable=False)
    winning_trades = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
