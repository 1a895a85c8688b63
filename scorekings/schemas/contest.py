from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from scorekings.models.enums import ContestStatus, Direction, EntryStatus
from scorekings.schemas.common import CamelModel

# the client sends over/under, the ledger stores higher/lower
DIRECTION_ALIASES = {
    "over": Direction.HIGHER,
    "more": Direction.HIGHER,
    "under": Direction.LOWER,
    "less": Direction.LOWER,
}


class PropIn(CamelModel):
    player_id: str = Field(..., min_length=1, max_length=64)
    player_name: str = Field(..., min_length=1, max_length=255)
    team: Optional[str] = None
    stat: str = "points"
    line: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)


class PropOut(PropIn):
    pass


class ContestCreate(CamelModel):
    id: Optional[UUID] = None
    title: str = Field(..., min_length=1, max_length=255)
    tournament: Optional[str] = None
    entry_fee: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    payout_multiplier: Optional[Decimal] = Field(None, gt=0, max_digits=8, decimal_places=2)
    props: list[PropIn] = Field(default_factory=list)


class ContestOut(CamelModel):
    id: UUID
    title: str
    tournament: Optional[str] = None
    entry_fee: Decimal
    payout_multiplier: Decimal
    status: ContestStatus
    created_at: datetime


class ContestDetail(ContestOut):
    props: list[PropOut]


class PickIn(CamelModel):
    player_id: str = Field(..., min_length=1, max_length=64)
    prediction: Direction

    @field_validator("prediction", mode="before")
    @classmethod
    def normalize_prediction(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return DIRECTION_ALIASES.get(value, value)
        return value


class PickOut(CamelModel):
    player_id: str
    player_name: str
    team: Optional[str] = None
    stat: str
    line: Optional[Decimal] = None
    prediction: Direction


class CreateEntryRequest(CamelModel):
    # length and distinctness are checked by the ledger so they map to InvalidPicks
    picks: list[PickIn]
    entry_fee: Optional[Decimal] = Field(None, gt=0, max_digits=18, decimal_places=2)


class EntryOut(CamelModel):
    id: UUID
    user_id: UUID
    contest_id: UUID
    picks: list[PickOut]
    entry_fee: Decimal
    potential_payout: Decimal
    status: EntryStatus
    created_at: datetime
    settled_at: Optional[datetime] = None


class SettleRequest(CamelModel):
    """Actual stat value per player id."""
    results: dict[str, Decimal]


class SettleContestResponse(CamelModel):
    contest_id: UUID
    settled: list[EntryOut]
    skipped: int
