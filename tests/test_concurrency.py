"""
Per-user serialization under real threads, each with its own session,
sharing one lock registry as the request threadpool does.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from scorekings.core.errors import InsufficientFunds
from scorekings.models.enums import Direction
from scorekings.schemas.contest import ContestCreate, PropIn
from scorekings.services import contests as contest_service
from scorekings.services.ledger import LedgerService

from conftest import picks


def run_concurrently(session_factory, locks, calls):
    """Run each call(ledger) on its own thread and session, released together."""
    barrier = threading.Barrier(len(calls))

    def worker(call):
        session = session_factory()
        try:
            barrier.wait()
            return call(LedgerService(session, locks=locks))
        except InsufficientFunds as exc:
            return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(worker, calls))


class TestConcurrentEntries:
    def test_at_most_one_overdrawing_entry_succeeds(self, session_factory, locks, make_user, ledger, balance_of, db):
        contest = contest_service.create_contest(db, ContestCreate(
            title="High stakes",
            entry_fee=Decimal("60.00"),
            props=[
                PropIn(player_id="a", player_name="Player A", line=Decimal("10")),
                PropIn(player_id="b", player_name="Player B", line=Decimal("10")),
            ],
        ))
        uid = make_user("racer@scorekings.io")
        ledger.deposit(uid, Decimal("100.00"))

        chosen = picks(("a", Direction.HIGHER), ("b", Direction.LOWER))
        results = run_concurrently(
            session_factory, locks,
            [lambda svc: svc.create_entry(uid, contest.id, chosen)] * 2,
        )

        failures = [r for r in results if isinstance(r, InsufficientFunds)]
        assert len(failures) == 1
        assert balance_of(uid) == (Decimal("40.00"), Decimal("40.00"))
        assert len(ledger.list_entries(uid)) == 1


class TestConcurrentWallet:
    def test_no_lost_updates(self, session_factory, locks, make_user, balance_of):
        uid = make_user("busy@scorekings.io")
        deposits = [lambda svc: svc.deposit(uid, Decimal("10.00"))] * 8

        run_concurrently(session_factory, locks, deposits)

        assert balance_of(uid) == (Decimal("80.00"), Decimal("80.00"))

    def test_withdrawals_never_overdraw(self, session_factory, locks, make_user, ledger, balance_of):
        uid = make_user("drained@scorekings.io")
        ledger.deposit(uid, Decimal("50.00"))

        results = run_concurrently(
            session_factory, locks,
            [lambda svc: svc.withdraw(uid, Decimal("20.00"))] * 4,
        )

        assert sum(1 for r in results if not isinstance(r, InsufficientFunds)) == 2
        assert balance_of(uid) == (Decimal("10.00"), Decimal("10.00"))

    def test_busy_account_does_not_block_others(self, db, locks, make_user, balance_of):
        first = make_user("first@scorekings.io")
        second = make_user("second@scorekings.io")
        service = LedgerService(db, locks=locks, timeout=1)

        with locks.hold(first, timeout=1):
            service.deposit(second, Decimal("7.00"))

        assert balance_of(second)[0] == Decimal("7.00")
        assert balance_of(first)[0] == Decimal("0.00")
