from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import AliasChoices, Field
from bitrader.models.trade import AssetType, TradeSide, OrderType, TradeStatus, ApprovalState
from bitrader.services.approval import BulkOutcome
from bitrader.schemas.common import CamelModel


class CreateTradeRequest(CamelModel):
    symbol: str = Field(min_length=1, max_length=20)
    asset_type: AssetType = AssetType.crypto
    # older clients send the side as "type"
    side: TradeSide = Field(validation_alias=AliasChoices("side", "type"))
    order_type: OrderType = OrderType.market
    quantity: Decimal = Field(gt=0)
    price: Decimal = Field(gt=0)


class TradeOut(CamelModel):
    id: int
    user_id: int
    symbol: str
    asset_type: AssetType
    side: TradeSide
    order_type: OrderType
    quantity: float
    price: float
    total_amount: float
    status: TradeStatus
    admin_approval: ApprovalState
    profit_loss: Optional[float] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AdminTradeOut(TradeOut):
    username: Optional[str] = None
    email: Optional[str] = None


class ApproveRequest(CamelModel):
    notes: Optional[str] = None


class RejectRequest(CamelModel):
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None


class TradeProfitRequest(CamelModel):
    profit_amount: Decimal
    note: Optional[str] = None


class BulkApproveRequest(CamelModel):
    trade_ids: List[int] = Field(min_length=1)


class BulkItemResult(CamelModel):
    id: int
    outcome: BulkOutcome


class BulkApproveResponse(CamelModel):
    approved_count: int
    results: List[BulkItemResult]
    trades: List[TradeOut]
