from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field
from bitrader.models.algorithm import AlgorithmType
from bitrader.schemas.common import CamelModel


class AlgorithmCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    type: AlgorithmType
    description: Optional[str] = None
    active: bool = True


class AlgorithmOut(CamelModel):
    id: int
    name: str
    type: AlgorithmType
    description: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None


class PerformanceCreate(CamelModel):
    algorithm_id: int
    sharpe_ratio: Optional[Decimal] = None
    max_drawdown: Optional[Decimal] = None
    avg_trade_duration: Optional[Decimal] = Field(default=None, ge=0)
    profit_factor: Optional[Decimal] = None
    total_trades: int = Field(default=0, ge=0)
    winning_trades: int = Field(default=0, ge=0)


class PerformanceOut(CamelModel):
    id: int
    user_id: int
    algorithm_id: int
    sharpe_ratio: Optional[float] = None
    max_drawdown: Optional[float] = None
    avg_trade_duration: Optional[float] = None
    profit_factor: Optional[float] = None
    total_trades: int
    winning_trades: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
