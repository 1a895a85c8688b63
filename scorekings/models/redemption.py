import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Enum, Uuid

from scorekings.db.base import Base
from scorekings.models.enums import RedemptionStatus
from scorekings.models.user import utcnow


class RedemptionRequest(Base):
    __tablename__ = "redemptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    prize_title = Column(String(255), nullable=False)
    cost = Column(Numeric(18, 2), nullable=False)
    status = Column(Enum(RedemptionStatus, native_enum=False, length=16), nullable=False, default=RedemptionStatus.PENDING)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
