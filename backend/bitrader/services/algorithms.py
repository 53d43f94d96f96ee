import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import Request
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.core.errors import NotFoundError, ValidationError
from bitrader.models.algorithm import Algorithm, AlgorithmType, PerformanceMetric
from bitrader.models.user import AdminUser
from bitrader.services.audit import log_admin_activity

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHMS = [
    ("Forex Algorithm", AlgorithmType.forex,
     "Advanced forex trading algorithm focusing on major currency pairs"),
    ("Gold Algorithm", AlgorithmType.gold,
     "Precious metals trading algorithm optimized for XAU/USD"),
    ("Stocks Algorithm", AlgorithmType.stocks,
     "Equity trading algorithm for major stock indices and blue-chip stocks"),
    ("Crypto Algorithm", AlgorithmType.crypto,
     "Cryptocurrency trading algorithm for Bitcoin, Ethereum, and major altcoins"),
]


async def ensure_default_algorithms(db: AsyncSession) -> int:
    """Seed the catalogue on an empty table; returns how many rows were added."""
    if await db.scalar(select(func.count(Algorithm.id))):
        return 0
    for name, kind, description in DEFAULT_ALGORITHMS:
        db.add(Algorithm(name=name, type=kind, description=description, active=True))
    await db.flush()
    logger.info("Seeded %d default algorithms", len(DEFAULT_ALGORITHMS))
    return len(DEFAULT_ALGORITHMS)


async def list_algorithms(db: AsyncSession, active_only: bool = True) -> List[Algorithm]:
    query = select(Algorithm).order_by(Algorithm.id)
    if active_only:
        query = query.where(Algorithm.active == True)
    return list(await db.scalars(query))


async def create_algorithm(
    db: AsyncSession,
    admin: AdminUser,
    name: str,
    kind: AlgorithmType,
    description: Optional[str] = None,
    active: bool = True,
    request: Optional[Request] = None,
) -> Algorithm:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Algorithm name is required")
    algorithm = Algorithm(name=name, type=kind, description=description, active=active)
    db.add(algorithm)
    await db.flush()
    log_admin_activity(db, admin.id, "CREATE", "ALGORITHM", algorithm.id,
                       {"name": name, "type": kind.value}, request)
    return algorithm


async def list_performance(
    db: AsyncSession, user_id: int, algorithm_id: Optional[int] = None,
) -> List[PerformanceMetric]:
    query = select(PerformanceMetric).where(PerformanceMetric.user_id == user_id)
    if algorithm_id is not None:
        query = query.where(PerformanceMetric.algorithm_id == algorithm_id)
    return list(await db.scalars(
        query.order_by(desc(PerformanceMetric.updated_at), desc(PerformanceMetric.id))
    ))


async def record_performance(
    db: AsyncSession,
    user_id: int,
    algorithm_id: int,
    sharpe_ratio: Optional[Decimal] = None,
    max_drawdown: Optional[Decimal] = None,
    avg_trade_duration: Optional[Decimal] = None,
    profit_factor: Optional[Decimal] = None,
    total_trades: int = 0,
    winning_trades: int = 0,
) -> PerformanceMetric:
    if await db.get(Algorithm, algorithm_id) is None:
        raise NotFoundError("Algorithm", algorithm_id)
    if winning_trades > total_trades:
        raise ValidationError("Winning trades cannot exceed total trades")

    metric = PerformanceMetric(
        user_id=user_id,
        algorithm_id=algorithm_id,
        sharpe_ratio=sharpe_ratio,
        max_drawdown=max_drawdown,
        avg_trade_duration=avg_trade_duration,
        profit_factor=profit_factor,
        total_trades=total_trades,
        winning_trades=winning_trades,
    )
    db.add(metric)
    await db.flush()
    logger.info("Recorded performance for user %s on algorithm %s", user_id, algorithm_id)
    return metric
