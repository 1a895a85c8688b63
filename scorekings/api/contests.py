from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Header, Query, status

from scorekings.api.deps import db_dependency, ledger_dependency
from scorekings.models.enums import ContestStatus
from scorekings.schemas.contest import ContestDetail, ContestOut, CreateEntryRequest, EntryOut, PropOut
from scorekings.services import contests as contest_service
from scorekings.services.auth import current_user_dependency, resolve_user_id

router = APIRouter()


@router.get("/contests", response_model=list[ContestOut])
def list_contests(
    db: db_dependency,
    contest_status: Optional[ContestStatus] = Query(None, alias="status"),
):
    return contest_service.list_contests(db, contest_status)


@router.get("/contests/{contest_id}", response_model=ContestDetail)
def get_contest(contest_id: UUID, db: db_dependency):
    return contest_service.get_contest(db, contest_id)


@router.get("/contests/{contest_id}/props", response_model=list[PropOut])
def list_props(contest_id: UUID, db: db_dependency):
    return contest_service.list_props(db, contest_id)


@router.post(
    "/contests/{contest_id}/entries",
    response_model=EntryOut,
    status_code=status.HTTP_201_CREATED,
)
def create_entry(
    contest_id: UUID,
    request: CreateEntryRequest,
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
    idempotency_key: Annotated[Optional[str], Header(max_length=128)] = None,
):
    return ledger.create_entry(
        current_user_id,
        contest_id,
        request.picks,
        entry_fee=request.entry_fee,
        idempotency_key=idempotency_key,
    )


@router.get("/users/{user_id}/entries", response_model=list[EntryOut])
def list_entries(
    user_id: UUID,
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    return ledger.list_entries(resolve_user_id(user_id, current_user_id), limit, offset)
