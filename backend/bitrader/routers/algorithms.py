from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bitrader.database import get_db
from bitrader.core.deps import get_current_user
from bitrader.models.user import User
from bitrader.schemas.algorithm import AlgorithmOut, PerformanceCreate, PerformanceOut
from bitrader.services import algorithms

router = APIRouter(prefix="/api", tags=["algorithms"])


@router.get("/algorithms", response_model=List[AlgorithmOut])
async def list_algorithms(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await algorithms.list_algorithms(db)


@router.get("/performance", response_model=List[PerformanceOut])
async def list_performance(
    algorithm_id: Optional[int] = Query(None, alias="algorithmId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await algorithms.list_performance(db, user.id, algorithm_id)


@router.post("/performance", response_model=PerformanceOut, status_code=201)
async def record_performance(
    body: PerformanceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    metric = await algorithms.record_performance(
        db, user.id, body.algorithm_id,
        sharpe_ratio=body.sharpe_ratio,
        max_drawdown=body.max_drawdown,
        avg_trade_duration=body.avg_trade_duration,
        profit_factor=body.profit_factor,
        total_trades=body.total_trades,
        winning_trades=body.winning_trades,
    )
    await db.commit()
    await db.refresh(metric)
    return metric
