"""
Unit tests for brother-date pair validation and canonical pair ordering.
"""

import pytest
from pydantic import ValidationError

from app.schemas import BrotherDateDecision, PointAward
from app.services.brother_dates import (
    MISSING_MEMBER,
    SELF_PAIRING,
    ensure_id_ordering,
    validate_brother_date,
)


class TestValidateBrotherDate:

    def test_rejects_same_member(self):
        verdict = validate_brother_date("abc", "abc")
        assert verdict.valid is False
        assert "yourself" in verdict.error

    def test_accepts_different_members(self):
        verdict = validate_brother_date("abc", "def")
        assert verdict.valid is True
        assert verdict.error is None

    @pytest.mark.parametrize("pair", [("", "abc"), ("abc", ""), (None, "abc"), ("abc", None)])
    def test_rejects_missing_member(self, pair):
        verdict = validate_brother_date(*pair)
        assert verdict.valid is False
        assert verdict.error == MISSING_MEMBER

    def test_missing_takes_precedence_over_self_pairing(self):
        """Two empty ids are equal, but the 'required' error wins."""
        verdict = validate_brother_date("", "")
        assert verdict.error == MISSING_MEMBER
        assert verdict.error != SELF_PAIRING


class TestEnsureIdOrdering:

    def test_orders_smaller_id_first(self):
        assert ensure_id_ordering("zzz", "aaa") == ("aaa", "zzz")

    def test_keeps_order_if_already_correct(self):
        assert ensure_id_ordering("aaa", "zzz") == ("aaa", "zzz")

    def test_equal_ids(self):
        assert ensure_id_ordering("abc", "abc") == ("abc", "abc")

    def test_order_independent(self):
        assert ensure_id_ordering("m-bob", "m-alice") == ensure_id_ordering("m-alice", "m-bob")

    def test_lexicographic_not_numeric(self):
        assert ensure_id_ordering("9", "10") == ("10", "9")


class TestInputBoundary:
    """Request schemas reject values before they reach the ledger."""

    def test_zero_point_award_is_rejected(self):
        with pytest.raises(ValidationError):
            PointAward(
                member_id="m-alice",
                category_id="7d5a0f5e-3a53-4f38-9d55-3cf7b0c5f0a1",
                semester_id="0b6f8f4c-1d33-4a4c-8f5e-8e1c5d2a9b10",
                points=0,
            )

    @pytest.mark.parametrize("points", [1, -5])
    def test_non_zero_award_is_accepted(self, points):
        award = PointAward(
            member_id="m-alice",
            category_id="7d5a0f5e-3a53-4f38-9d55-3cf7b0c5f0a1",
            semester_id="0b6f8f4c-1d33-4a4c-8f5e-8e1c5d2a9b10",
            points=points,
        )
        assert award.points == points

    def test_negative_brother_date_award_is_rejected(self):
        with pytest.raises(ValidationError):
            BrotherDateDecision(approved=True, points_awarded=-1)
