"""
Operator endpoints: contest catalog, settlement and the payout/prize
back office. Guarded by the ``X-Admin-Key`` header.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from scorekings.api.deps import db_dependency, ledger_dependency
from scorekings.schemas.contest import (
    ContestCreate,
    ContestDetail,
    ContestOut,
    EntryOut,
    SettleContestResponse,
    SettleRequest,
)
from scorekings.schemas.wallet import BalanceResponse, RedeemResponse, RedemptionOut, TransactionOut
from scorekings.services import contests as contest_service
from scorekings.services.auth import require_admin

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.post("/contests", response_model=ContestDetail, status_code=status.HTTP_201_CREATED)
def create_contest(request: ContestCreate, db: db_dependency):
    return contest_service.create_contest(db, request)


@router.post("/contests/{contest_id}/close", response_model=ContestOut)
def close_contest(contest_id: UUID, db: db_dependency):
    return contest_service.close_contest(db, contest_id)


@router.post("/contests/{contest_id}/settle", response_model=SettleContestResponse)
def settle_contest(contest_id: UUID, request: SettleRequest, ledger: ledger_dependency):
    settled, skipped = ledger.settle_contest(contest_id, request.results)
    return SettleContestResponse(contest_id=contest_id, settled=settled, skipped=skipped)


@router.post("/entries/{entry_id}/settle", response_model=EntryOut)
def settle_entry(entry_id: UUID, request: SettleRequest, ledger: ledger_dependency):
    return ledger.settle_entry(entry_id, request.results)


@router.post("/withdrawals/{transaction_id}/complete", response_model=TransactionOut)
def complete_withdrawal(transaction_id: UUID, ledger: ledger_dependency):
    return ledger.complete_withdrawal(transaction_id)


@router.post("/withdrawals/{transaction_id}/fail", response_model=BalanceResponse)
def fail_withdrawal(transaction_id: UUID, ledger: ledger_dependency):
    return ledger.fail_withdrawal(transaction_id)


@router.post("/redemptions/{redemption_id}/fulfill", response_model=RedemptionOut)
def fulfill_redemption(redemption_id: UUID, ledger: ledger_dependency):
    return ledger.fulfill_redemption(redemption_id)


@router.post("/redemptions/{redemption_id}/reject", response_model=RedeemResponse)
def reject_redemption(redemption_id: UUID, ledger: ledger_dependency):
    return ledger.reject_redemption(redemption_id)
