"""
Shared fixtures.

The demo contests below are the fallback data the mobile client hard-codes
when the API is unreachable; here they only seed test databases.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from scorekings.db.init_db import init_db
from scorekings.db.session import get_db, make_engine
from scorekings.main import app
from scorekings.models.user import User
from scorekings.schemas.contest import ContestCreate, PickIn, PropIn
from scorekings.services import contests as contest_service
from scorekings.services.auth import create_access_token, hash_password
from scorekings.services.ledger import LedgerService
from scorekings.services.locks import UserLocks

ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}
PASSWORD = "Secret123"

# OTE regular season props, graded against a line
OTE_CONTEST = ContestCreate(
    title="CHS vs RWE",
    tournament="OTE Regular Season",
    entry_fee=Decimal("20.00"),
    props=[
        PropIn(player_id="chs-1", player_name="Jaylen Carter", team="CHS", stat="points", line=Decimal("18.50")),
        PropIn(player_id="chs-2", player_name="Ty Morgan", team="CHS", stat="points", line=Decimal("12.50")),
        PropIn(player_id="rwe-1", player_name="Malik Reed", team="RWE", stat="points", line=Decimal("21.50")),
        PropIn(player_id="rwe-2", player_name="Andre Hill", team="RWE", stat="points", line=Decimal("9.50")),
    ],
)

# head-to-head: no lines, the two picked players are compared with each other
HEAD_TO_HEAD_CONTEST = ContestCreate(
    title="Edwards vs Curry",
    tournament="Points per game",
    entry_fee=Decimal("10.00"),
    props=[
        PropIn(player_id="edwards", player_name="Anthony Edwards", team="Wolves", stat="ppg"),
        PropIn(player_id="curry", player_name="Steph Curry", team="Warriors", stat="ppg"),
    ],
)


def picks(*pairs):
    return [PickIn(player_id=player_id, prediction=prediction) for player_id, prediction in pairs]


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def locks():
    return UserLocks()


@pytest.fixture
def ledger(db, locks):
    return LedgerService(db, locks=locks)


@pytest.fixture
def make_user(session_factory):
    def _make_user(email="player@scorekings.io", password=PASSWORD) -> UUID:
        with session_factory() as session, session.begin():
            user = User(email=email, hashed_password=hash_password(password))
            session.add(user)
            session.flush()
            return user.id
    return _make_user


@pytest.fixture
def user_id(make_user, ledger):
    """A player holding 100.00, funded through the ledger like any real deposit."""
    uid = make_user()
    ledger.deposit(uid, Decimal("100.00"))
    return uid


@pytest.fixture
def ote_contest(session_factory):
    with session_factory() as session:
        return contest_service.create_contest(session, OTE_CONTEST)


@pytest.fixture
def h2h_contest(session_factory):
    with session_factory() as session:
        return contest_service.create_contest(session, HEAD_TO_HEAD_CONTEST)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def balance_of(session_factory):
    """Stored balance and the ledger sum of non-failed transactions for a user."""
    from sqlalchemy import select

    from scorekings.models.enums import TransactionStatus
    from scorekings.models.transaction import Transaction

    def _balance_of(uid: UUID) -> tuple[Decimal, Decimal]:
        with session_factory() as session:
            balance = session.get(User, uid).balance
            amounts = session.execute(
                select(Transaction.amount).where(
                    Transaction.user_id == uid,
                    Transaction.status != TransactionStatus.FAILED,
                )
            ).scalars().all()
        cent = Decimal("0.01")
        total = sum((Decimal(str(a)) for a in amounts), Decimal("0"))
        return Decimal(str(balance)).quantize(cent), total.quantize(cent)
    return _balance_of
