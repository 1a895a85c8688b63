import uuid
from sqlalchemy import Column, ForeignKey, DateTime, Numeric, Enum, Uuid, JSON

from scorekings.db.base import Base
from scorekings.models.enums import EntryStatus
from scorekings.models.user import utcnow


class ContestEntry(Base):
    __tablename__ = "contest_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    contest_id = Column(Uuid, ForeignKey("contests.id"), nullable=False, index=True)

    # ordered list of pick dicts, written once at creation
    picks = Column(JSON, nullable=False)

    entry_fee = Column(Numeric(18, 2), nullable=False)
    potential_payout = Column(Numeric(18, 2), nullable=False)
    status = Column(Enum(EntryStatus, native_enum=False, length=16), nullable=False, default=EntryStatus.ACTIVE)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)
