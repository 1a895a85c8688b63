from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from scorekings.db.session import get_db
from scorekings.services.ledger import LedgerService

# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


def get_ledger(db: db_dependency) -> LedgerService:
    return LedgerService(db)


ledger_dependency = Annotated[LedgerService, Depends(get_ledger)]
