"""
Ledger service: every operation that reads or moves a user's balance.

Balance mutations follow one recipe:

1. take the per-user lock (bounded by the request deadline),
2. open a database transaction and lock the user row,
3. apply the balance change with a conditional UPDATE ... RETURNING,
4. append the matching ``transactions`` row,
5. check the deadline again and commit.

Any exception before the commit rolls the whole transaction back, so a
debit is never visible without its ledger row and vice versa. The ledger
keeps ``users.balance == sum(non-FAILED transaction amounts)``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from scorekings.core.config import settings
from scorekings.core.errors import (
    AlreadySettled,
    IdempotencyConflict,
    InsufficientFunds,
    InvalidPicks,
    NotFound,
    Timeout,
    ValidationError,
)
from scorekings.models.contest import Contest, PlayerProp
from scorekings.models.entry import ContestEntry
from scorekings.models.enums import (
    ContestStatus,
    EntryStatus,
    RedemptionStatus,
    TransactionStatus,
    TransactionType,
)
from scorekings.models.idempotency import IdempotencyKey
from scorekings.models.redemption import RedemptionRequest
from scorekings.models.transaction import Transaction
from scorekings.models.user import User
from scorekings.schemas.auth import UserOut
from scorekings.schemas.contest import EntryOut, PickIn
from scorekings.schemas.wallet import (
    BalanceResponse,
    RedeemResponse,
    RedemptionOut,
    TransactionListResponse,
    TransactionOut,
)
from scorekings.services.contests import payout_for
from scorekings.services.locks import Deadline, UserLocks, user_locks
from scorekings.services.settlement import PICKS_PER_ENTRY, grade_entry

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


def _require_positive(amount: Decimal, what: str = "Amount") -> Decimal:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise ValidationError(f"{what} must be > 0")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{what} must have at most 2 decimal places")
    return amount.quantize(CENT)


class LedgerService:
    def __init__(
        self,
        db: Session,
        locks: UserLocks = user_locks,
        timeout: Optional[float] = None,
    ):
        self.db = db
        self.locks = locks
        self.timeout = settings.REQUEST_TIMEOUT_SECONDS if timeout is None else timeout

    # -- transaction plumbing -------------------------------------------------

    @contextmanager
    def _atomic(self, user_id: UUID):
        """Per-user lock + database transaction, committed only within the deadline."""
        deadline = Deadline(self.timeout)
        with self.locks.hold(user_id, timeout=deadline.remaining()):
            try:
                with self.db.begin():
                    yield
                    deadline.check()
            except OperationalError as exc:
                # SQLite gives up on a locked database once its busy timeout runs out
                if deadline.expired():
                    raise Timeout(f"Request exceeded {deadline.seconds:g}s") from exc
                raise

    def _lock_user(self, user_id: UUID, active_only: bool = True) -> User:
        stmt = select(User).where(User.id == user_id)
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        user = self.db.execute(stmt.with_for_update()).scalars().first()
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    def _credit(self, user_id: UUID, amount: Decimal) -> Decimal:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount)
            .returning(User.balance)
            .execution_options(synchronize_session=False)
        )
        return _money(self.db.execute(stmt).scalar_one())

    def _debit(self, user: User, amount: Decimal) -> Decimal:
        if _money(user.balance) < amount:
            raise InsufficientFunds(
                f"Insufficient funds: balance {_money(user.balance)}, required {amount}"
            )
        # Atomic conditional update prevents overdraft even without the row lock
        stmt = (
            update(User)
            .where(User.id == user.id, User.balance >= amount)
            .values(balance=User.balance - amount)
            .returning(User.balance)
            .execution_options(synchronize_session=False)
        )
        row = self.db.execute(stmt).first()
        if row is None:
            raise InsufficientFunds()
        return _money(row[0])

    def _record(
        self,
        user_id: UUID,
        tx_type: TransactionType,
        amount: Decimal,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        **links,
    ) -> Transaction:
        tx = Transaction(user_id=user_id, type=tx_type, status=status, amount=amount, **links)
        self.db.add(tx)
        self.db.flush()  # ensures tx.id is available
        return tx

    def _balance_response(self, user_id: UUID, balance: Decimal, tx: Transaction) -> BalanceResponse:
        return BalanceResponse(
            user_id=user_id,
            balance=balance,
            transaction=TransactionOut.model_validate(tx),
        )

    # -- users ------------------------------------------------------------------

    def get_user(self, user_id: UUID) -> UserOut:
        with self.db.begin():
            user = self.db.execute(
                select(User).where(User.id == user_id, User.is_active.is_(True))
            ).scalars().first()
            if user is None:
                raise NotFound(f"User {user_id} not found")
            return UserOut.model_validate(user)

    def deactivate_user(self, user_id: UUID) -> None:
        with self._atomic(user_id):
            user = self._lock_user(user_id)
            user.is_active = False
        logger.info("User %s deactivated", user_id)

    # -- wallet -----------------------------------------------------------------

    def deposit(self, user_id: UUID, amount: Decimal, reference: Optional[str] = None) -> BalanceResponse:
        amount = _require_positive(amount)
        with self._atomic(user_id):
            self._lock_user(user_id)
            new_balance = self._credit(user_id, amount)
            tx = self._record(user_id, TransactionType.DEPOSIT, amount, reference=reference)
            response = self._balance_response(user_id, new_balance, tx)

        logger.info("Deposit of %s for user %s, balance %s", amount, user_id, new_balance)
        return response

    def withdraw(self, user_id: UUID, amount: Decimal, reference: Optional[str] = None) -> BalanceResponse:
        amount = _require_positive(amount)
        if amount < settings.MIN_WITHDRAWAL:
            raise ValidationError(f"Minimum withdrawal is {_money(settings.MIN_WITHDRAWAL)}")
        with self._atomic(user_id):
            user = self._lock_user(user_id)
            new_balance = self._debit(user, amount)
            # settled later by the payout process, see complete/fail_withdrawal
            tx = self._record(
                user_id, TransactionType.WITHDRAWAL, -amount,
                status=TransactionStatus.PENDING, reference=reference,
            )
            response = self._balance_response(user_id, new_balance, tx)

        logger.info("Withdrawal of %s pending for user %s, balance %s", amount, user_id, new_balance)
        return response

    def _pending_withdrawal(self, transaction_id: UUID) -> Transaction:
        tx = self.db.execute(
            select(Transaction).where(Transaction.id == transaction_id).with_for_update()
        ).scalars().first()
        if tx is None or tx.type != TransactionType.WITHDRAWAL:
            raise NotFound(f"Withdrawal {transaction_id} not found")
        if tx.status != TransactionStatus.PENDING:
            raise AlreadySettled(f"Withdrawal {transaction_id} is already {tx.status.value}")
        return tx

    def _withdrawal_owner(self, transaction_id: UUID) -> UUID:
        with self.db.begin():
            user_id = self.db.execute(
                select(Transaction.user_id).where(
                    Transaction.id == transaction_id,
                    Transaction.type == TransactionType.WITHDRAWAL,
                )
            ).scalar_one_or_none()
        if user_id is None:
            raise NotFound(f"Withdrawal {transaction_id} not found")
        return user_id

    def complete_withdrawal(self, transaction_id: UUID) -> TransactionOut:
        user_id = self._withdrawal_owner(transaction_id)
        with self._atomic(user_id):
            tx = self._pending_withdrawal(transaction_id)
            tx.status = TransactionStatus.COMPLETED
            self.db.flush()
            result = TransactionOut.model_validate(tx)

        logger.info("Withdrawal %s completed", transaction_id)
        return result

    def fail_withdrawal(self, transaction_id: UUID) -> BalanceResponse:
        """Mark a payout as failed and give the money back."""
        user_id = self._withdrawal_owner(transaction_id)
        with self._atomic(user_id):
            self._lock_user(user_id, active_only=False)
            tx = self._pending_withdrawal(transaction_id)
            tx.status = TransactionStatus.FAILED
            new_balance = self._credit(user_id, -_money(tx.amount))
            self.db.flush()
            response = self._balance_response(user_id, new_balance, tx)

        logger.warning("Withdrawal %s failed, %s returned to user %s", transaction_id, -response.transaction.amount, user_id)
        return response

    def list_transactions(self, user_id: UUID, limit: int = 50, offset: int = 0) -> TransactionListResponse:
        with self.db.begin():
            user = self.db.get(User, user_id)
            if user is None or not user.is_active:
                raise NotFound(f"User {user_id} not found")
            total = self.db.execute(
                select(func.count()).select_from(Transaction).where(Transaction.user_id == user_id)
            ).scalar_one()
            rows = self.db.execute(
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .order_by(Transaction.created_at.desc(), Transaction.id.desc())
                .limit(limit)
                .offset(offset)
            ).scalars().all()
            return TransactionListResponse(
                user_id=user_id,
                transactions=[TransactionOut.model_validate(t) for t in rows],
                total_count=total,
                balance=_money(user.balance),
            )

    # -- redemptions ------------------------------------------------------------

    def redeem(self, user_id: UUID, prize_title: str, cost: Decimal) -> RedeemResponse:
        cost = _require_positive(cost, "Cost")
        if not prize_title or not prize_title.strip():
            raise ValidationError("Prize title is required")

        with self._atomic(user_id):
            user = self._lock_user(user_id)
            new_balance = self._debit(user, cost)

            redemption = RedemptionRequest(
                user_id=user_id,
                prize_title=prize_title.strip(),
                cost=cost,
                status=RedemptionStatus.PENDING,
            )
            self.db.add(redemption)
            self.db.flush()
            self._record(user_id, TransactionType.REDEMPTION, -cost, redemption_id=redemption.id)

            response = RedeemResponse(
                new_balance=new_balance,
                redemption=RedemptionOut.model_validate(redemption),
            )

        logger.info("User %s redeemed %r for %s, balance %s", user_id, prize_title, cost, new_balance)
        return response

    def _redemption_owner(self, redemption_id: UUID) -> UUID:
        with self.db.begin():
            user_id = self.db.execute(
                select(RedemptionRequest.user_id).where(RedemptionRequest.id == redemption_id)
            ).scalar_one_or_none()
        if user_id is None:
            raise NotFound(f"Redemption {redemption_id} not found")
        return user_id

    def _pending_redemption(self, redemption_id: UUID) -> RedemptionRequest:
        redemption = self.db.execute(
            select(RedemptionRequest).where(RedemptionRequest.id == redemption_id).with_for_update()
        ).scalars().one()
        if redemption.status != RedemptionStatus.PENDING:
            raise AlreadySettled(f"Redemption {redemption_id} is already {redemption.status.value}")
        return redemption

    def fulfill_redemption(self, redemption_id: UUID) -> RedemptionOut:
        user_id = self._redemption_owner(redemption_id)
        with self._atomic(user_id):
            redemption = self._pending_redemption(redemption_id)
            redemption.status = RedemptionStatus.FULFILLED
            redemption.resolved_at = datetime.now(timezone.utc)
            self.db.flush()
            result = RedemptionOut.model_validate(redemption)

        logger.info("Redemption %s fulfilled", redemption_id)
        return result

    def reject_redemption(self, redemption_id: UUID) -> RedeemResponse:
        user_id = self._redemption_owner(redemption_id)
        with self._atomic(user_id):
            self._lock_user(user_id, active_only=False)
            redemption = self._pending_redemption(redemption_id)
            redemption.status = RedemptionStatus.REJECTED
            redemption.resolved_at = datetime.now(timezone.utc)
            cost = _money(redemption.cost)
            new_balance = self._credit(user_id, cost)
            self._record(user_id, TransactionType.REFUND, cost, redemption_id=redemption.id)
            response = RedeemResponse(
                new_balance=new_balance,
                redemption=RedemptionOut.model_validate(redemption),
            )

        logger.info("Redemption %s rejected, %s refunded to user %s", redemption_id, cost, user_id)
        return response

    # -- contest entries --------------------------------------------------------

    def _validate_picks(self, picks: Sequence[PickIn]) -> None:
        if len(picks) != PICKS_PER_ENTRY:
            raise InvalidPicks(f"An entry must have exactly {PICKS_PER_ENTRY} picks, got {len(picks)}")
        if len({p.player_id for p in picks}) != len(picks):
            raise InvalidPicks("Picks must be for distinct players")

    @staticmethod
    def _fingerprint(picks: Sequence[PickIn]) -> str:
        return ",".join(f"{p.player_id}:{p.prediction.value}" for p in picks)

    def _existing_entry(
        self,
        user_id: UUID,
        idempotency_key: str,
        contest_id: UUID,
        fingerprint: str,
    ) -> Optional[EntryOut]:
        record = self.db.execute(
            select(IdempotencyKey).where(IdempotencyKey.key == idempotency_key)
        ).scalars().first()
        if record is None:
            return None
        if record.user_id != user_id:
            raise IdempotencyConflict("Idempotency key already used by another account")
        if record.contest_id != contest_id or record.picks_fingerprint != fingerprint:
            raise IdempotencyConflict("Idempotency key already used for a different entry")
        return EntryOut.model_validate(self.db.get(ContestEntry, record.entry_id))

    def create_entry(
        self,
        user_id: UUID,
        contest_id: UUID,
        picks: Sequence[PickIn],
        entry_fee: Optional[Decimal] = None,
        idempotency_key: Optional[str] = None,
    ) -> EntryOut:
        self._validate_picks(picks)
        fingerprint = self._fingerprint(picks)

        with self._atomic(user_id):
            user = self._lock_user(user_id)

            if idempotency_key:
                existing = self._existing_entry(user_id, idempotency_key, contest_id, fingerprint)
                if existing is not None:
                    logger.info("Entry %s replayed for idempotency key %r", existing.id, idempotency_key)
                    return existing

            contest = self.db.get(Contest, contest_id)
            if contest is None:
                raise NotFound(f"Contest {contest_id} not found")
            if contest.status != ContestStatus.OPEN:
                raise ValidationError(f"Contest {contest_id} is closed")

            fee = _money(contest.entry_fee)
            if entry_fee is not None and _money(entry_fee) != fee:
                raise ValidationError(f"Entry fee for this contest is {fee}")

            props = {
                p.player_id: p
                for p in self.db.execute(
                    select(PlayerProp).where(PlayerProp.contest_id == contest_id)
                ).scalars()
            }
            unknown = [p.player_id for p in picks if p.player_id not in props]
            if unknown:
                raise InvalidPicks(f"Players not offered in this contest: {', '.join(unknown)}")
            # without lines both players are graded against each other
            chosen = [props[p.player_id] for p in picks]
            if all(p.line is None for p in chosen) and picks[0].prediction == picks[1].prediction:
                raise InvalidPicks("Head-to-head picks must predict opposite directions")

            stored_picks = []
            for pick in picks:
                prop = props[pick.player_id]
                stored_picks.append({
                    "playerId": prop.player_id,
                    "playerName": prop.player_name,
                    "team": prop.team,
                    "stat": prop.stat,
                    "line": None if prop.line is None else str(_money(prop.line)),
                    "prediction": pick.prediction.value,
                })

            new_balance = self._debit(user, fee)

            entry = ContestEntry(
                user_id=user_id,
                contest_id=contest_id,
                picks=stored_picks,
                entry_fee=fee,
                potential_payout=payout_for(contest),
                status=EntryStatus.ACTIVE,
            )
            self.db.add(entry)
            self.db.flush()

            self._record(user_id, TransactionType.CONTEST_ENTRY, -fee, entry_id=entry.id)
            if idempotency_key:
                self.db.add(IdempotencyKey(
                    key=idempotency_key,
                    user_id=user_id,
                    entry_id=entry.id,
                    contest_id=contest_id,
                    picks_fingerprint=fingerprint,
                ))
                self.db.flush()

            result = EntryOut.model_validate(entry)

        logger.info("Entry %s created for user %s in contest %s, balance %s", result.id, user_id, contest_id, new_balance)
        return result

    def list_entries(self, user_id: UUID, limit: int = 50, offset: int = 0) -> list[EntryOut]:
        with self.db.begin():
            user = self.db.get(User, user_id)
            if user is None or not user.is_active:
                raise NotFound(f"User {user_id} not found")
            rows = self.db.execute(
                select(ContestEntry)
                .where(ContestEntry.user_id == user_id)
                .order_by(ContestEntry.created_at.desc(), ContestEntry.id.desc())
                .limit(limit)
                .offset(offset)
            ).scalars().all()
            return [EntryOut.model_validate(e) for e in rows]

    # -- settlement ---------------------------------------------------------------

    def settle_entry(self, entry_id: UUID, results: Mapping[str, Decimal]) -> EntryOut:
        with self.db.begin():
            user_id = self.db.execute(
                select(ContestEntry.user_id).where(ContestEntry.id == entry_id)
            ).scalar_one_or_none()
        if user_id is None:
            raise NotFound(f"Entry {entry_id} not found")

        with self._atomic(user_id):
            self._lock_user(user_id, active_only=False)
            entry = self.db.execute(
                select(ContestEntry).where(ContestEntry.id == entry_id).with_for_update()
            ).scalars().one()
            if entry.status != EntryStatus.ACTIVE:
                raise AlreadySettled(f"Entry {entry_id} is already {entry.status.value}")

            outcome = grade_entry(entry.picks, results)

            if outcome == EntryStatus.WON:
                payout = _money(entry.potential_payout)
                self._credit(user_id, payout)
                self._record(user_id, TransactionType.CONTEST_WIN, payout, entry_id=entry.id)
            elif outcome == EntryStatus.VOID:
                fee = _money(entry.entry_fee)
                self._credit(user_id, fee)
                self._record(user_id, TransactionType.REFUND, fee, entry_id=entry.id)

            entry.status = outcome
            entry.settled_at = datetime.now(timezone.utc)
            self.db.flush()
            result = EntryOut.model_validate(entry)

        logger.info("Entry %s settled as %s", entry_id, outcome.value)
        return result

    def settle_contest(self, contest_id: UUID, results: Mapping[str, Decimal]) -> tuple[list[EntryOut], int]:
        """Close a contest and settle its active entries one transaction each.

        Returns the settled entries and the number of entries skipped because
        another caller settled them first.
        """
        with self.db.begin():
            contest = self.db.get(Contest, contest_id)
            if contest is None:
                raise NotFound(f"Contest {contest_id} not found")
            active = self.db.execute(
                select(ContestEntry.id, ContestEntry.picks)
                .where(ContestEntry.contest_id == contest_id, ContestEntry.status == EntryStatus.ACTIVE)
                .order_by(ContestEntry.created_at)
            ).all()
            picked = {pick["playerId"] for _, picks in active for pick in picks}
            missing = sorted(picked - set(results))
            if missing:
                raise ValidationError(f"Missing results for players: {', '.join(missing)}")
            contest.status = ContestStatus.CLOSED
            entry_ids = [entry_id for entry_id, _ in active]

        settled, skipped = [], 0
        for entry_id in entry_ids:
            try:
                settled.append(self.settle_entry(entry_id, results))
            except AlreadySettled:
                skipped += 1

        logger.info("Contest %s settled: %d entries, %d skipped", contest_id, len(settled), skipped)
        return settled, skipped
