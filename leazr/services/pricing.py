"""
Leasing price calculator.

Coefficients are expressed as "monthly payment per 100 financed":
    monthly_payment = financed_amount * coefficient / 100

Rules:
- A missing or non-positive coefficient never divides: the result is 0
- Money is rounded half-up to the cent only on the way out
- The displayed monthly payment is either locked (sum of per-item payments)
  or floats with the global coefficient, see displayed_monthly_payment()
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional, Sequence

from leazr.services.ranges import resolve_range, to_decimal

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
COEF_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _coef(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(COEF_PLACES, rounding=ROUND_HALF_UP)


def _usable(coefficient: Any) -> bool:
    return coefficient is not None and to_decimal(coefficient) > 0


def _financed(monthly_payment: Any, coefficient: Any) -> Decimal:
    if not _usable(coefficient):
        return ZERO
    return to_decimal(monthly_payment) * HUNDRED / to_decimal(coefficient)


def _monthly(financed_amount: Any, coefficient: Any) -> Decimal:
    if not _usable(coefficient):
        return ZERO
    return to_decimal(financed_amount) * to_decimal(coefficient) / HUNDRED


def calculate_financed_amount(monthly_payment: Any, coefficient: Any) -> Decimal:
    """Financed principal for a monthly payment. 0 when coefficient <= 0 or missing."""
    return _money(_financed(monthly_payment, coefficient))


def calculate_monthly_payment(financed_amount: Any, coefficient: Any) -> Decimal:
    """Monthly payment for a financed principal. 0 when coefficient <= 0 or missing."""
    return _money(_monthly(financed_amount, coefficient))


def calculate_item_total(item: Any) -> Decimal:
    """purchase_price * quantity * (1 + margin / 100)"""
    return (
        to_decimal(item.purchase_price)
        * to_decimal(item.quantity)
        * (1 + to_decimal(item.margin) / HUNDRED)
    )


def find_coefficient(ranges: Sequence[Any], amount: Any) -> Optional[Decimal]:
    """Coefficient of the leaser range containing `amount`, or None on a miss."""
    matched = resolve_range(ranges, amount)
    if matched is None:
        return None
    return to_decimal(matched.coefficient)


# =============================================================================
# EQUIPMENT CALCULATION
# =============================================================================


@dataclass
class CalculationResult:
    """Totals of an equipment list priced against one leaser."""

    total_purchase_price: Decimal = ZERO
    normal_margin_amount: Decimal = ZERO
    normal_margin_percentage: Decimal = ZERO
    normal_monthly_payment: Decimal = ZERO
    adjusted_margin_amount: Decimal = ZERO
    adjusted_margin_percentage: Decimal = ZERO
    adjusted_monthly_payment: Decimal = ZERO
    margin_difference: Decimal = ZERO
    current_coefficient: Optional[Decimal] = None
    global_coefficient: Optional[Decimal] = None
    total_financed_amount: Decimal = ZERO


def calculate_equipment_results(items: Sequence[Any], ranges: Sequence[Any]) -> CalculationResult:
    """
    Price an equipment list two ways and report the margin difference.

    - normal: every item is financed on its own, with the coefficient of its
      own financed amount (or its stored monthly payment when it has one)
    - global: the whole financed amount uses the coefficient of its range

    margin_difference = normal margin - margin needed to keep the normal
    monthly payment under the global coefficient. Positive means margin is
    lost by switching to the global coefficient, negative means it is gained.
    """
    total_purchase = sum(
        (to_decimal(item.purchase_price) * to_decimal(item.quantity) for item in items),
        ZERO,
    )
    normal_margin = sum(
        (
            to_decimal(item.purchase_price) * to_decimal(item.quantity)
            * to_decimal(item.margin) / HUNDRED
            for item in items
        ),
        ZERO,
    )
    total_financed = total_purchase + normal_margin

    normal_monthly = ZERO
    for item in items:
        stored = getattr(item, "monthly_payment", None)
        if stored is not None:
            normal_monthly += to_decimal(stored) * to_decimal(item.quantity)
            continue
        item_financed = calculate_item_total(item)
        normal_monthly += _monthly(item_financed, find_coefficient(ranges, item_financed))

    global_coef = find_coefficient(ranges, total_financed)
    adjusted_monthly = _monthly(total_financed, global_coef)

    if _usable(global_coef):
        adjusted_margin = _financed(normal_monthly, global_coef) - total_purchase
    else:
        adjusted_margin = normal_margin

    current_coef = None
    if total_financed > 0 and normal_monthly > 0:
        current_coef = normal_monthly * HUNDRED / total_financed

    def percentage(part: Decimal) -> Decimal:
        if total_purchase <= 0:
            return ZERO
        return _money(part / total_purchase * HUNDRED)

    result = CalculationResult(
        total_purchase_price=_money(total_purchase),
        normal_margin_amount=_money(normal_margin),
        normal_margin_percentage=percentage(normal_margin),
        normal_monthly_payment=_money(normal_monthly),
        adjusted_margin_amount=_money(adjusted_margin),
        adjusted_margin_percentage=percentage(adjusted_margin),
        adjusted_monthly_payment=_money(adjusted_monthly),
        margin_difference=_money(normal_margin - adjusted_margin),
        current_coefficient=_coef(current_coef),
        global_coefficient=_coef(global_coef),
        total_financed_amount=_money(total_financed),
    )

    logger.debug(
        f"Calculated {len(items)} items: financed={result.total_financed_amount} "
        f"coef={result.global_coefficient} margin_difference={result.margin_difference}"
    )
    return result


# =============================================================================
# GLOBAL MARGIN ADJUSTMENT
# =============================================================================


@dataclass
class GlobalMarginAdjustment:
    """
    Override applied on top of per-item margins.

    active=False keeps the monthly payment stable ("locked"): a coefficient
    change is only recorded in margin_difference.
    active=True lets the coefficient change flow through to the price.
    """

    amount: Decimal = ZERO
    current_coef: Optional[Decimal] = None
    new_coef: Optional[Decimal] = None
    active: bool = False
    margin_difference: Decimal = ZERO

    @property
    def coefficient_changed(self) -> bool:
        return _coef(self.current_coef) != _coef(self.new_coef)


def build_global_adjustment(result: CalculationResult, active: bool = False) -> GlobalMarginAdjustment:
    return GlobalMarginAdjustment(
        amount=result.normal_margin_amount,
        current_coef=result.current_coefficient,
        new_coef=result.global_coefficient,
        active=active,
        margin_difference=result.margin_difference,
    )


def displayed_monthly_payment(
    locked_monthly_payment: Any,
    total_financed_amount: Any,
    adjustment: GlobalMarginAdjustment,
) -> Decimal:
    """
    Monthly payment shown to the user.

    Floats to `total_financed * new_coef / 100` only when the adjustment is
    active and the coefficient really changed; otherwise the locked payment
    is returned as is, so toggling `active` without a coefficient change
    never moves the price.
    """
    locked = _money(to_decimal(locked_monthly_payment))
    if not adjustment.active or not adjustment.coefficient_changed:
        return locked
    if not _usable(adjustment.new_coef):
        return locked
    return calculate_monthly_payment(total_financed_amount, adjustment.new_coef)


# =============================================================================
# MARGIN FROM TARGET MONTHLY PAYMENT
# =============================================================================


@dataclass
class MarginResult:
    percentage: Decimal = ZERO
    amount: Decimal = ZERO
    coefficient: Optional[Decimal] = None


def calculate_margin_from_monthly_payment(
    purchase_price: Any,
    target_monthly_payment: Any,
    ranges: Sequence[Any],
) -> MarginResult:
    """
    Margin needed so that `purchase_price` is leased for `target_monthly_payment`.

    The coefficient depends on the financed amount, which depends on the
    coefficient: the first range whose coefficient yields a financed amount
    inside that same range is used.
    """
    price = to_decimal(purchase_price)
    target = to_decimal(target_monthly_payment)
    if price <= 0 or target <= 0:
        return MarginResult()

    for candidate in ranges:
        coefficient = to_decimal(candidate.coefficient)
        if coefficient <= 0:
            continue
        financed = _financed(target, coefficient)
        if to_decimal(candidate.min_amount) <= financed <= to_decimal(candidate.max_amount):
            margin = financed - price
            return MarginResult(
                percentage=_money(margin / price * HUNDRED),
                amount=_money(margin),
                coefficient=_coef(coefficient),
            )

    logger.debug(f"No coefficient yields a consistent financed amount for {target}/month")
    return MarginResult()


# =============================================================================
# OFFER CONFIGURATION
# =============================================================================


@dataclass
class OfferConfiguration:
    """
    Everything needed to price an offer, validated as a unit.

    Items expose purchase_price, quantity, margin and optionally
    monthly_payment and title.
    """

    ranges: Sequence[Any] = field(default_factory=list)
    items: Sequence[Any] = field(default_factory=list)
    adapt_monthly_payment: bool = False
    ambassador_id: Optional[int] = None
    commission_level_id: Optional[int] = None

    def validate(self) -> List[str]:
        """Return the list of problems; empty when the configuration is usable."""
        problems = []
        if not self.items:
            problems.append("At least one equipment item is required")

        for index, item in enumerate(self.items, start=1):
            label = getattr(item, "title", None) or f"item #{index}"
            if int(item.quantity) < 1:
                problems.append(f"{label}: quantity must be at least 1")
            if to_decimal(item.purchase_price) < 0:
                problems.append(f"{label}: purchase price cannot be negative")
            if to_decimal(item.margin) < 0:
                problems.append(f"{label}: margin cannot be negative")

        if self.commission_level_id is not None and self.ambassador_id is None:
            problems.append("A commission level requires an ambassador")

        return problems


@dataclass
class OfferQuote:
    calculation: CalculationResult
    adjustment: GlobalMarginAdjustment
    monthly_payment: Decimal
    financed_amount: Decimal
    coefficient: Optional[Decimal]


def quote(configuration: OfferConfiguration) -> OfferQuote:
    """
    Price a configuration once.

    Raises:
        ValueError: configuration.validate() reported problems
    """
    problems = configuration.validate()
    if problems:
        raise ValueError("; ".join(problems))

    result = calculate_equipment_results(configuration.items, configuration.ranges)
    adjustment = build_global_adjustment(result, active=configuration.adapt_monthly_payment)
    monthly = displayed_monthly_payment(
        result.normal_monthly_payment,
        result.total_financed_amount,
        adjustment,
    )
    coefficient = adjustment.new_coef if adjustment.new_coef is not None else adjustment.current_coef

    return OfferQuote(
        calculation=result,
        adjustment=adjustment,
        monthly_payment=monthly,
        financed_amount=calculate_financed_amount(monthly, coefficient),
        coefficient=coefficient,
    )
