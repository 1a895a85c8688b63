import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Numeric, Enum, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from scorekings.db.base import Base
from scorekings.models.enums import ContestStatus
from scorekings.models.user import utcnow


class Contest(Base):
    __tablename__ = "contests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    tournament = Column(String(255), nullable=True)

    entry_fee = Column(Numeric(18, 2), nullable=False)
    payout_multiplier = Column(Numeric(8, 2), nullable=False, default=3)
    status = Column(Enum(ContestStatus, native_enum=False, length=16), nullable=False, default=ContestStatus.OPEN)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    props = relationship("PlayerProp", back_populates="contest", order_by="PlayerProp.position")


class PlayerProp(Base):
    __tablename__ = "player_props"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contest_id = Column(Uuid, ForeignKey("contests.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    player_id = Column(String(64), nullable=False)
    player_name = Column(String(255), nullable=False)
    team = Column(String(64), nullable=True)
    stat = Column(String(32), nullable=False, default="points")
    line = Column(Numeric(10, 2), nullable=True)  # null: graded head-to-head

    contest = relationship("Contest", back_populates="props")

    __table_args__ = (
        UniqueConstraint("contest_id", "player_id", name="uq_prop_contest_player"),
    )
