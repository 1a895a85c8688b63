import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from scorekings.core.config import settings
from scorekings.core.errors import NotFound, ValidationError
from scorekings.models.contest import Contest, PlayerProp
from scorekings.models.enums import ContestStatus
from scorekings.schemas.contest import ContestCreate, ContestDetail, ContestOut, PropOut

logger = logging.getLogger(__name__)


def _load_contest(db: Session, contest_id: UUID, with_props: bool = False) -> Contest:
    stmt = select(Contest).where(Contest.id == contest_id)
    if with_props:
        stmt = stmt.options(selectinload(Contest.props))
    contest = db.execute(stmt).scalars().first()
    if contest is None:
        raise NotFound(f"Contest {contest_id} not found")
    return contest


def create_contest(db: Session, request: ContestCreate) -> ContestDetail:
    player_ids = [p.player_id for p in request.props]
    if len(player_ids) != len(set(player_ids)):
        raise ValidationError("Each player can only have one prop per contest")

    with db.begin():
        if request.id is not None and db.get(Contest, request.id) is not None:
            raise ValidationError(f"Contest {request.id} already exists")

        contest = Contest(
            title=request.title,
            tournament=request.tournament,
            entry_fee=request.entry_fee,
            payout_multiplier=request.payout_multiplier or settings.DEFAULT_PAYOUT_MULTIPLIER,
            status=ContestStatus.OPEN,
        )
        if request.id is not None:
            contest.id = request.id
        db.add(contest)
        db.flush()

        for position, prop in enumerate(request.props):
            db.add(PlayerProp(
                contest_id=contest.id,
                position=position,
                player_id=prop.player_id,
                player_name=prop.player_name,
                team=prop.team,
                stat=prop.stat,
                line=prop.line,
            ))
        db.flush()

        contest = _load_contest(db, contest.id, with_props=True)
        detail = ContestDetail.model_validate(contest)

    logger.info("Contest %s created with %d props", detail.id, len(detail.props))
    return detail


def list_contests(db: Session, status: Optional[ContestStatus] = None) -> list[ContestOut]:
    with db.begin():
        stmt = select(Contest).order_by(Contest.created_at.desc())
        if status is not None:
            stmt = stmt.where(Contest.status == status)
        return [ContestOut.model_validate(c) for c in db.execute(stmt).scalars().all()]


def get_contest(db: Session, contest_id: UUID) -> ContestDetail:
    with db.begin():
        return ContestDetail.model_validate(_load_contest(db, contest_id, with_props=True))


def list_props(db: Session, contest_id: UUID) -> list[PropOut]:
    return get_contest(db, contest_id).props


def close_contest(db: Session, contest_id: UUID) -> ContestOut:
    with db.begin():
        contest = _load_contest(db, contest_id)
        contest.status = ContestStatus.CLOSED
        db.flush()
        closed = ContestOut.model_validate(contest)

    logger.info("Contest %s closed", contest_id)
    return closed


def payout_for(contest: Contest) -> Decimal:
    return (Decimal(contest.entry_fee) * Decimal(contest.payout_multiplier)).quantize(Decimal("0.01"))
