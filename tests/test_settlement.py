from decimal import Decimal

import pytest

from scorekings.core.errors import InvalidPicks, ValidationError
from scorekings.models.enums import Direction, EntryStatus
from scorekings.services.settlement import PickResult, grade_entry, grade_pick


def pick(player_id, prediction, line=None):
    return {"playerId": player_id, "prediction": prediction, "line": line}


class TestGradePick:
    def test_higher_hits_above_reference(self):
        assert grade_pick(Direction.HIGHER, Decimal("20"), Decimal("18.5")) == PickResult.HIT

    def test_lower_misses_above_reference(self):
        assert grade_pick(Direction.LOWER, Decimal("20"), Decimal("18.5")) == PickResult.MISS

    def test_equal_is_push(self):
        assert grade_pick(Direction.HIGHER, Decimal("18.5"), Decimal("18.5")) == PickResult.PUSH
        assert grade_pick(Direction.LOWER, Decimal("18.5"), Decimal("18.5")) == PickResult.PUSH


class TestGradeEntryAgainstLines:
    def test_both_hit_wins(self):
        picks = [pick("a", "higher", "18.50"), pick("b", "lower", "9.50")]
        assert grade_entry(picks, {"a": Decimal("22"), "b": Decimal("4")}) == EntryStatus.WON

    def test_one_miss_loses(self):
        picks = [pick("a", "higher", "18.50"), pick("b", "lower", "9.50")]
        assert grade_entry(picks, {"a": Decimal("22"), "b": Decimal("11")}) == EntryStatus.LOST

    def test_push_without_miss_voids(self):
        picks = [pick("a", "higher", "18.00"), pick("b", "lower", "9.50")]
        assert grade_entry(picks, {"a": Decimal("18"), "b": Decimal("4")}) == EntryStatus.VOID

    def test_miss_beats_push(self):
        picks = [pick("a", "higher", "18.00"), pick("b", "lower", "9.50")]
        assert grade_entry(picks, {"a": Decimal("18"), "b": Decimal("12")}) == EntryStatus.LOST


class TestGradeEntryHeadToHead:
    def test_higher_player_wins(self):
        picks = [pick("edwards", "higher"), pick("curry", "lower")]
        assert grade_entry(picks, {"edwards": Decimal("31"), "curry": Decimal("27")}) == EntryStatus.WON

    def test_wrong_side_loses(self):
        picks = [pick("edwards", "higher"), pick("curry", "lower")]
        assert grade_entry(picks, {"edwards": Decimal("25.9"), "curry": Decimal("29.4")}) == EntryStatus.LOST

    def test_equal_stats_void_the_entry(self):
        """Equal values never crown a winner."""
        picks = [pick("edwards", "higher"), pick("curry", "lower")]
        assert grade_entry(picks, {"edwards": Decimal("28"), "curry": Decimal("28")}) == EntryStatus.VOID


class TestGradeEntryValidation:
    def test_missing_result_is_rejected(self):
        picks = [pick("a", "higher", "1"), pick("b", "lower", "1")]
        with pytest.raises(ValidationError, match="b"):
            grade_entry(picks, {"a": Decimal("2")})

    def test_wrong_pick_count_is_rejected(self):
        with pytest.raises(InvalidPicks):
            grade_entry([pick("a", "higher", "1")], {"a": Decimal("2")})
