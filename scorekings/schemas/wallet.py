from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from scorekings.models.enums import TransactionType, TransactionStatus, RedemptionStatus
from scorekings.schemas.common import CamelModel


class AmountRequest(CamelModel):
    user_id: Optional[UUID] = None
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)


class TransactionOut(CamelModel):
    id: UUID
    user_id: UUID
    type: TransactionType
    status: TransactionStatus
    amount: Decimal
    reference: Optional[str] = None
    entry_id: Optional[UUID] = None
    redemption_id: Optional[UUID] = None
    created_at: datetime


class BalanceResponse(CamelModel):
    user_id: UUID
    balance: Decimal
    transaction: TransactionOut


class TransactionListResponse(CamelModel):
    user_id: UUID
    transactions: list[TransactionOut]
    total_count: int
    balance: Decimal


class RedeemRequest(CamelModel):
    user_id: Optional[UUID] = None
    prize_title: str = Field(..., min_length=1, max_length=255)
    cost: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)


class RedemptionOut(CamelModel):
    id: UUID
    user_id: UUID
    prize_title: str
    cost: Decimal
    status: RedemptionStatus
    created_at: datetime
    resolved_at: Optional[datetime] = None


class RedeemResponse(CamelModel):
    new_balance: Decimal
    redemption: RedemptionOut
