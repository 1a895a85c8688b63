from fastapi import APIRouter, Query

from scorekings.api.deps import ledger_dependency
from scorekings.schemas.wallet import (
    AmountRequest,
    BalanceResponse,
    RedeemRequest,
    RedeemResponse,
    TransactionListResponse,
)
from scorekings.services.auth import current_user_dependency, resolve_user_id

router = APIRouter()


@router.post("/wallet/deposit", response_model=BalanceResponse)
def deposit(
    request: AmountRequest,
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
):
    user_id = resolve_user_id(request.user_id, current_user_id)
    return ledger.deposit(user_id, request.amount)


@router.post("/wallet/withdraw", response_model=BalanceResponse)
def withdraw(
    request: AmountRequest,
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
):
    user_id = resolve_user_id(request.user_id, current_user_id)
    return ledger.withdraw(user_id, request.amount)


@router.get("/wallet/transactions", response_model=TransactionListResponse)
def transactions(
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    return ledger.list_transactions(current_user_id, limit, offset)


@router.post("/redeem", response_model=RedeemResponse)
def redeem(
    request: RedeemRequest,
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
):
    user_id = resolve_user_id(request.user_id, current_user_id)
    return ledger.redeem(user_id, request.prize_title, request.cost)
