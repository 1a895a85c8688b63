from scorekings.db.base import Base

# imported for their table definitions
from scorekings.models import user, contest, entry, transaction, redemption, idempotency  # noqa: F401


def init_db(engine) -> None:
    Base.metadata.create_all(bind=engine)
