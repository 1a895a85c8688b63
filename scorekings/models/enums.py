"""
Status and type enums shared by the models and the API schemas
"""

import enum


class TransactionType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    CONTEST_ENTRY = "CONTEST_ENTRY"
    CONTEST_WIN = "CONTEST_WIN"
    REFUND = "REFUND"
    REDEMPTION = "REDEMPTION"


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class EntryStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"


class ContestStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class RedemptionStatus(str, enum.Enum):
    PENDING = "PENDING"
    FULFILLED = "FULFILLED"
    REJECTED = "REJECTED"


class Direction(str, enum.Enum):
    """Predicted direction of a pick, relative to the prop line or the other player."""
    HIGHER = "higher"
    LOWER = "lower"
