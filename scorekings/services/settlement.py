"""
Grading of contest entries against actual stat results.

Each pick is compared with a reference value: the prop line when the prop
has one, otherwise the actual value of the other picked player
(head-to-head). A pick "hits" when the actual value is strictly on the
predicted side of the reference and "pushes" when it is equal.

Entry outcome:
- any missed pick -> LOST
- no miss but at least one push -> VOID (stake refunded)
- every pick hit -> WON

Two head-to-head players with equal stats therefore void the entry.
"""

import enum
from decimal import Decimal
from typing import Mapping, Sequence

from scorekings.core.errors import InvalidPicks, ValidationError
from scorekings.models.enums import Direction, EntryStatus

PICKS_PER_ENTRY = 2


class PickResult(str, enum.Enum):
    HIT = "HIT"
    MISS = "MISS"
    PUSH = "PUSH"


def grade_pick(direction: Direction, actual: Decimal, reference: Decimal) -> PickResult:
    if actual == reference:
        return PickResult.PUSH
    went_higher = actual > reference
    if (direction == Direction.HIGHER) == went_higher:
        return PickResult.HIT
    return PickResult.MISS


def grade_entry(picks: Sequence[Mapping], results: Mapping[str, Decimal]) -> EntryStatus:
    if len(picks) != PICKS_PER_ENTRY:
        raise InvalidPicks(f"An entry must have exactly {PICKS_PER_ENTRY} picks")

    missing = [p["playerId"] for p in picks if p["playerId"] not in results]
    if missing:
        raise ValidationError(f"Missing results for players: {', '.join(missing)}")

    outcomes = []
    for index, pick in enumerate(picks):
        actual = Decimal(str(results[pick["playerId"]]))
        if pick.get("line") is not None:
            reference = Decimal(str(pick["line"]))
        else:
            other = picks[1 - index]
            reference = Decimal(str(results[other["playerId"]]))
        outcomes.append(grade_pick(Direction(pick["prediction"]), actual, reference))

    if PickResult.MISS in outcomes:
        return EntryStatus.LOST
    if PickResult.PUSH in outcomes:
        return EntryStatus.VOID
    return EntryStatus.WON
