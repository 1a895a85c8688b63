from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
import uuid

from scorekings.db.base import Base
from scorekings.models.user import utcnow

class IdempotencyKey(Base):
    """Client-supplied key of an entry submission, so retries never debit twice."""
    __tablename__ = "idempotency_keys"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(String(128), unique=True, nullable=False)

    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    entry_id = Column(Uuid, ForeignKey("contest_entries.id"), nullable=False)

    # what the key was first used for; a retry must repeat it exactly
    contest_id = Column(Uuid, ForeignKey("contests.id"), nullable=False)
    picks_fingerprint = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
