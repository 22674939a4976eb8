"""
Range lookup shared by leaser coefficients and commission tiers.

A range is any object exposing `min_amount` and `max_amount` (ORM rows,
pydantic schemas, SimpleNamespace in tests). Lookups keep the configured
list order: when legacy data overlaps, the first matching range wins.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class RangeOverlapError(ValueError):
    """Raised when a range list cannot be saved as configured."""

    def __init__(self, message: str, pairs: Optional[List[Tuple[int, int]]] = None):
        super().__init__(message)
        self.pairs = pairs or []


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")


def resolve_range(ranges: Sequence[Any], amount: Any) -> Optional[Any]:
    """
    Return the first range with `min_amount <= amount <= max_amount`.

    Returns None when nothing matches; a miss is an expected outcome
    and the caller decides the fallback.
    """
    value = to_decimal(amount)
    for candidate in ranges:
        if to_decimal(candidate.min_amount) <= value <= to_decimal(candidate.max_amount):
            return candidate

    logger.debug(f"No range matches amount {value} ({len(ranges)} ranges)")
    return None


def find_overlaps(ranges: Sequence[Any]) -> List[Tuple[int, int]]:
    """Index pairs `(i, j)`, i < j, of ranges that share at least one amount."""
    pairs = []
    for i, first in enumerate(ranges):
        for j in range(i + 1, len(ranges)):
            second = ranges[j]
            if (
                to_decimal(first.min_amount) <= to_decimal(second.max_amount)
                and to_decimal(second.min_amount) <= to_decimal(first.max_amount)
            ):
                pairs.append((i, j))
    return pairs


def find_gaps(ranges: Sequence[Any]) -> List[Tuple[Decimal, Decimal]]:
    """
    Uncovered intervals between consecutive ranges, sorted by min_amount.

    Amounts are compared to the cent: 2500 followed by 2500.01 is contiguous.
    """
    ordered = sorted(ranges, key=lambda r: to_decimal(r.min_amount))
    gaps = []
    step = Decimal("0.01")
    for previous, current in zip(ordered, ordered[1:]):
        upper = to_decimal(previous.max_amount)
        lower = to_decimal(current.min_amount)
        if lower - upper > step:
            gaps.append((upper + step, lower - step))
    return gaps


def validate_ranges(ranges: Sequence[Any]) -> None:
    """
    Reject range lists that would make lookups ambiguous.

    Raises:
        RangeOverlapError: a range has min > max, or two ranges overlap
    """
    for index, candidate in enumerate(ranges):
        if to_decimal(candidate.min_amount) > to_decimal(candidate.max_amount):
            raise RangeOverlapError(
                f"Range #{index + 1}: min ({candidate.min_amount}) is greater "
                f"than max ({candidate.max_amount})"
            )

    pairs = find_overlaps(ranges)
    if pairs:
        described = ", ".join(f"#{i + 1}/#{j + 1}" for i, j in pairs)
        raise RangeOverlapError(f"Overlapping ranges: {described}", pairs)
