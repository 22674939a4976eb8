"""
Tiered commission calculation for referring principals.

Rules:
- The financed amount selects a tier of the principal's commission level
- A tier pays either `rate` percent of the financed amount or a flat `fixed_amount`
- Any miss or database failure yields a zero commission; commission is a
  display enhancement and never blocks an offer
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.models import (
    Ambassador,
    CommissionLevel,
    CommissionStatus,
    Offer,
    PrincipalType,
)
from leazr.services.errors import OfferNotFoundError
from leazr.services.ranges import resolve_range, to_decimal

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class CommissionResult:
    amount: Decimal = Decimal("0")
    rate: Decimal = Decimal("0")
    level_name: str = ""

    @classmethod
    def zero(cls) -> "CommissionResult":
        return cls()


def resolve_commission(tiers: Sequence[Any], financed_amount: Any, level_name: str) -> CommissionResult:
    """Commission for `financed_amount` under the given tiers (pure)."""
    amount = to_decimal(financed_amount)
    if amount <= 0:
        return CommissionResult.zero()

    tier = resolve_range(tiers, amount)
    if tier is None:
        return CommissionResult.zero()

    rate = to_decimal(tier.rate)
    fixed = getattr(tier, "fixed_amount", None)
    if fixed is not None:
        commission = to_decimal(fixed)
    else:
        commission = amount * rate / Decimal("100")

    return CommissionResult(
        amount=commission.quantize(CENT, rounding=ROUND_HALF_UP),
        rate=rate,
        level_name=level_name,
    )


def _principal_type(value: Any) -> PrincipalType:
    if isinstance(value, PrincipalType):
        return value
    return PrincipalType.AMBASSADOR if str(value) == PrincipalType.AMBASSADOR.value else PrincipalType.PARTNER


async def _find_level(
    db: AsyncSession,
    level_id: Optional[int],
    principal_type: PrincipalType,
    principal_id: Optional[int],
) -> Optional[CommissionLevel]:
    if level_id:
        level = await db.get(CommissionLevel, level_id)
        if level:
            return level
        logger.debug(f"Commission level {level_id} not found, trying principal's level")

    if principal_type == PrincipalType.AMBASSADOR and principal_id:
        ambassador = await db.get(Ambassador, principal_id)
        if ambassador and ambassador.commission_level_id:
            level = await db.get(CommissionLevel, ambassador.commission_level_id)
            if level:
                return level

    result = await db.execute(
        select(CommissionLevel)
        .where(
            CommissionLevel.type == principal_type,
            CommissionLevel.is_default.is_(True),
        )
        .order_by(CommissionLevel.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def calculate_commission_by_level(
    db: AsyncSession,
    financed_amount: Any,
    level_id: Optional[int],
    principal_type: Any = PrincipalType.AMBASSADOR,
    principal_id: Optional[int] = None,
) -> CommissionResult:
    """
    Calculate the commission of a principal for a financed amount.

    Level resolution order: explicit `level_id`, the principal's configured
    level, then the default level of the principal type.

    Returns:
        CommissionResult, zero on any miss or database error
    """
    ptype = _principal_type(principal_type)
    try:
        level = await _find_level(db, level_id, ptype, principal_id)
    except SQLAlchemyError as e:
        logger.error(f"Commission lookup failed for level {level_id}: {e}", exc_info=True)
        return CommissionResult.zero()

    if level is None:
        logger.debug(f"No commission level for {ptype.value} {principal_id}")
        return CommissionResult.zero()

    return resolve_commission(level.rates, financed_amount, level.name)


# =============================================================================
# AMBASSADOR COMMISSION LEDGER
# =============================================================================


@dataclass
class AmbassadorCommission:
    id: int
    amount: Decimal
    client_name: str
    date: datetime
    status: str
    description: str = field(default="Commission for equipment")


def _describe(offer: Offer) -> str:
    if offer.equipment:
        return f"Commission for {offer.equipment[0].title}"
    return "Commission for equipment"


async def get_ambassador_commissions(db: AsyncSession, ambassador_id: int) -> List[AmbassadorCommission]:
    """Offers of an ambassador that carry a commission, newest first."""
    result = await db.execute(
        select(Offer)
        .where(
            Offer.ambassador_id == ambassador_id,
            Offer.commission > 0,
        )
        .order_by(Offer.created_at.desc(), Offer.id.desc())
    )
    offers = result.scalars().all()
    logger.info(f"Found {len(offers)} commissions for ambassador {ambassador_id}")

    return [
        AmbassadorCommission(
            id=offer.id,
            amount=offer.commission,
            client_name=offer.client_name or "Unknown client",
            date=offer.created_at,
            status=offer.commission_status.value,
            description=_describe(offer),
        )
        for offer in offers
    ]


async def calculate_total_ambassador_commissions(db: AsyncSession, ambassador_id: int) -> dict:
    """Totals of an ambassador's commissions: {pending, paid, total}."""
    totals = {"pending": Decimal("0"), "paid": Decimal("0"), "total": Decimal("0")}

    result = await db.execute(
        select(Offer.commission, Offer.commission_status)
        .where(
            Offer.ambassador_id == ambassador_id,
            Offer.commission > 0,
        )
    )
    for amount, commission_status in result.all():
        value = to_decimal(amount)
        totals["total"] += value
        if commission_status == CommissionStatus.PAID:
            totals["paid"] += value
        elif commission_status == CommissionStatus.PENDING:
            totals["pending"] += value

    return totals


async def update_commission_status(
    db: AsyncSession,
    offer_id: int,
    new_status: CommissionStatus,
) -> Offer:
    """Set the commission status of an offer; paying stamps commission_paid_at."""
    offer = await db.get(Offer, offer_id)
    if not offer:
        raise OfferNotFoundError(offer_id)

    offer.commission_status = new_status
    if new_status == CommissionStatus.PAID:
        offer.commission_paid_at = datetime.now(timezone.utc)

    await db.flush()
    logger.info(f"Commission of offer {offer_id} marked {new_status.value}")
    return offer
