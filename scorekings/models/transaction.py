import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Enum, Uuid

from scorekings.db.base import Base
from scorekings.models.enums import TransactionType, TransactionStatus
from scorekings.models.user import utcnow

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    type = Column(Enum(TransactionType, native_enum=False, length=20), nullable=False)
    status = Column(Enum(TransactionStatus, native_enum=False, length=16), nullable=False, default=TransactionStatus.PENDING)

    amount = Column(Numeric(18, 2), nullable=False)  # +credit / -debit

    reference = Column(String, unique=True, nullable=True)
    entry_id = Column(Uuid, ForeignKey("contest_entries.id"), nullable=True)
    redemption_id = Column(Uuid, ForeignKey("redemptions.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
