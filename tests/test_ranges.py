"""
Tests for range lookup shared by leaser coefficients and commission tiers.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from leazr.services.ranges import (
    RangeOverlapError,
    find_gaps,
    find_overlaps,
    resolve_range,
    to_decimal,
    validate_ranges,
)


def _range(low, high, coefficient="3.0"):
    return SimpleNamespace(
        min_amount=Decimal(low),
        max_amount=Decimal(high),
        coefficient=Decimal(coefficient),
    )


LEASER_RANGES = [
    _range("0", "2500", "3.0"),
    _range("2500.01", "10000", "3.5"),
]


# ── resolve_range ─────────────────────────────────────────


class TestResolveRange:
    def test_upper_bound_is_inclusive(self):
        assert resolve_range(LEASER_RANGES, 2500) is LEASER_RANGES[0]

    def test_next_range_starts_at_next_cent(self):
        assert resolve_range(LEASER_RANGES, 2500.01) is LEASER_RANGES[1]

    def test_above_all_ranges_is_a_miss(self):
        assert resolve_range(LEASER_RANGES, 10000.01) is None

    def test_lower_bound_is_inclusive(self):
        assert resolve_range(LEASER_RANGES, 0) is LEASER_RANGES[0]

    def test_empty_list_is_a_miss(self):
        assert resolve_range([], 100) is None

    def test_accepts_strings_and_decimals(self):
        assert resolve_range(LEASER_RANGES, "2500.01") is LEASER_RANGES[1]
        assert resolve_range(LEASER_RANGES, Decimal("9999.99")) is LEASER_RANGES[1]

    def test_amount_in_gap_is_a_miss(self):
        ranges = [_range("0", "1000"), _range("2000", "3000")]
        assert resolve_range(ranges, 1500) is None

    def test_unique_match_for_every_amount(self):
        for amount in ("0", "1", "1250.50", "2500", "2500.01", "7000", "10000"):
            matches = [
                r for r in LEASER_RANGES
                if r.min_amount <= Decimal(amount) <= r.max_amount
            ]
            assert len(matches) == 1
            assert resolve_range(LEASER_RANGES, amount) is matches[0]

    def test_overlap_keeps_list_order(self):
        """Legacy overlapping data: the first configured range wins, not the lowest."""
        late = _range("1000", "5000", "2.9")
        early = _range("0", "2000", "3.2")
        assert resolve_range([late, early], 1500) is late
        assert resolve_range([early, late], 1500) is early


# ── to_decimal ────────────────────────────────────────────


class TestToDecimal:
    def test_float_has_no_binary_artefacts(self):
        assert to_decimal(2500.01) == Decimal("2500.01")

    def test_none_is_zero(self):
        assert to_decimal(None) == Decimal("0")

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            to_decimal("abc")


# ── validation ────────────────────────────────────────────


class TestValidateRanges:
    def test_contiguous_ranges_are_valid(self):
        validate_ranges(LEASER_RANGES)

    def test_overlap_is_rejected(self):
        ranges = [_range("0", "2500"), _range("2000", "5000")]
        with pytest.raises(RangeOverlapError) as exc:
            validate_ranges(ranges)
        assert exc.value.pairs == [(0, 1)]

    def test_shared_bound_is_an_overlap(self):
        ranges = [_range("0", "2500"), _range("2500", "5000")]
        assert find_overlaps(ranges) == [(0, 1)]

    def test_min_above_max_is_rejected(self):
        with pytest.raises(RangeOverlapError):
            validate_ranges([_range("500", "100")])

    def test_overlap_error_is_a_value_error(self):
        assert issubclass(RangeOverlapError, ValueError)

    def test_gaps_are_allowed(self):
        validate_ranges([_range("0", "1000"), _range("2000", "3000")])


class TestFindGaps:
    def test_no_gap_between_consecutive_cents(self):
        assert find_gaps(LEASER_RANGES) == []

    def test_reports_uncovered_interval(self):
        ranges = [_range("2000", "3000"), _range("0", "1000")]
        assert find_gaps(ranges) == [(Decimal("1000.01"), Decimal("1999.99"))]
