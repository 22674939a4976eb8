"""
Offer creation, lookup and deletion.

Creating an offer is a sequence of independent writes (offer row, equipment
rows, commission, first log row). It runs as a saga: every step is
committed, and a failing step compensates the committed ones in reverse
order instead of leaving a half-created offer behind.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.config import settings
from leazr.db import get_db_context
from leazr.models import (
    Contract,
    Leaser,
    Offer,
    OfferEquipment,
    OfferType,
    OfferWorkflowLog,
    OfferWorkflowStatus,
    PrincipalType,
)
from leazr.services.commission import CommissionResult, calculate_commission_by_level
from leazr.services.errors import OfferLockedError, OfferNotFoundError
from leazr.services.pricing import OfferConfiguration, OfferQuote, quote
from leazr.services.recompute import CommissionRecomputer, RecomputeRequest
from leazr.services.saga import Saga

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "client_name",
    "client_email",
    "client_id",
    "remarks",
    "ambassador_id",
    "commission_level_id",
)


async def get_leaser(db: AsyncSession, leaser_id: Optional[int]) -> Optional[Leaser]:
    """The requested leaser, or the default one when no id is given."""
    if leaser_id:
        return await db.get(Leaser, leaser_id)

    result = await db.execute(
        select(Leaser)
        .where(Leaser.name == settings.default_leaser_name)
        .order_by(Leaser.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


def build_configuration(leaser: Optional[Leaser], data: Any) -> OfferConfiguration:
    return OfferConfiguration(
        ranges=list(leaser.ranges) if leaser else [],
        items=list(data.equipment),
        adapt_monthly_payment=data.adapt_monthly_payment,
        ambassador_id=data.ambassador_id,
        commission_level_id=data.commission_level_id,
    )


async def create_offer(db: AsyncSession, data: Any, user_id: int) -> Offer:
    """
    Create a draft offer with its equipment, priced against the leaser.

    Args:
        data: OfferCreate-like object (client fields, leaser_id, equipment,
            adapt_monthly_payment, ambassador_id, commission_level_id, type)

    Raises:
        ValueError: invalid equipment configuration
        SagaError: a write failed; committed steps were compensated
    """
    leaser = await get_leaser(db, data.leaser_id)
    configuration = build_configuration(leaser, data)
    priced: OfferQuote = quote(configuration)
    calculation = priced.calculation

    offer_type = data.type
    if offer_type is None:
        offer_type = OfferType.AMBASSADOR_OFFER if data.ambassador_id else OfferType.ADMIN_OFFER

    async def insert_offer(ctx: Dict[str, Any]) -> Offer:
        offer = Offer(
            client_name=data.client_name,
            client_email=data.client_email,
            client_id=data.client_id,
            type=offer_type,
            leaser_id=leaser.id if leaser else None,
            amount=calculation.total_purchase_price,
            coefficient=priced.coefficient or 0,
            monthly_payment=priced.monthly_payment,
            financed_amount=priced.financed_amount,
            margin=calculation.normal_margin_amount,
            margin_difference=calculation.margin_difference,
            ambassador_id=data.ambassador_id,
            commission_level_id=data.commission_level_id,
            user_id=user_id,
            workflow_status=OfferWorkflowStatus.DRAFT,
            remarks=data.remarks,
        )
        db.add(offer)
        await db.commit()
        return offer

    async def remove_offer(ctx: Dict[str, Any]) -> None:
        await db.rollback()
        await db.delete(ctx["insert_offer"])
        await db.commit()

    async def insert_equipment(ctx: Dict[str, Any]) -> List[OfferEquipment]:
        offer = ctx["insert_offer"]
        rows = [
            OfferEquipment(
                offer_id=offer.id,
                position=position,
                title=item.title,
                purchase_price=item.purchase_price,
                quantity=item.quantity,
                margin=item.margin,
                monthly_payment=item.monthly_payment,
            )
            for position, item in enumerate(data.equipment)
        ]
        db.add_all(rows)
        await db.commit()
        return rows

    async def remove_equipment(ctx: Dict[str, Any]) -> None:
        offer_id = ctx["insert_offer"].id
        await db.rollback()
        await db.execute(delete(OfferEquipment).where(OfferEquipment.offer_id == offer_id))
        await db.commit()

    async def compute_commission(ctx: Dict[str, Any]) -> None:
        if not data.ambassador_id:
            return None
        commission = await calculate_commission_by_level(
            db,
            priced.financed_amount,
            data.commission_level_id,
            PrincipalType.AMBASSADOR,
            data.ambassador_id,
        )
        ctx["insert_offer"].commission = commission.amount
        await db.commit()
        return commission

    async def log_creation(ctx: Dict[str, Any]) -> OfferWorkflowLog:
        log = OfferWorkflowLog(
            offer_id=ctx["insert_offer"].id,
            user_id=user_id,
            previous_status=OfferWorkflowStatus.DRAFT.value,
            new_status=OfferWorkflowStatus.DRAFT.value,
            reason="Offer created",
        )
        db.add(log)
        await db.commit()
        return log

    saga = Saga("create_offer")
    saga.add_step("insert_offer", insert_offer, remove_offer)
    saga.add_step("insert_equipment", insert_equipment, remove_equipment)
    saga.add_step("compute_commission", compute_commission)
    saga.add_step("log_creation", log_creation)
    context = await saga.run()

    offer = context["insert_offer"]
    await db.refresh(offer)
    logger.info(
        f"Offer {offer.id} created for {offer.client_name}: "
        f"{offer.monthly_payment}/month, commission {offer.commission}"
    )
    return offer


async def get_offer(db: AsyncSession, offer_id: int) -> Offer:
    offer = await db.get(Offer, offer_id)
    if not offer:
        raise OfferNotFoundError(offer_id)
    return offer


async def get_offers(
    db: AsyncSession,
    converted: Optional[bool] = False,
    status: Optional[OfferWorkflowStatus] = None,
    ambassador_id: Optional[int] = None,
) -> List[Offer]:
    """Offers, newest first. converted=None returns offers and contracts alike."""
    query = select(Offer)

    if converted is not None:
        query = query.where(Offer.converted_to_contract.is_(converted))
    if status is not None:
        query = query.where(Offer.workflow_status == status)
    if ambassador_id is not None:
        query = query.where(Offer.ambassador_id == ambassador_id)

    result = await db.execute(query.order_by(Offer.created_at.desc(), Offer.id.desc()))
    return list(result.scalars().all())


async def update_offer(db: AsyncSession, offer_id: int, changes: Dict[str, Any]) -> Offer:
    """
    Edit client details, remarks, ambassador or commission level of an offer.

    Removing the ambassador zeroes the commission: nobody is owed one.

    Raises:
        OfferLockedError: the offer was converted to a contract
    """
    offer = await get_offer(db, offer_id)
    if offer.converted_to_contract:
        raise OfferLockedError(offer_id)

    for key, value in changes.items():
        if key in EDITABLE_FIELDS:
            setattr(offer, key, value)

    if "ambassador_id" in changes and changes["ambassador_id"] is None:
        offer.commission = Decimal("0")

    await db.flush()
    return offer


async def delete_offer(db: AsyncSession, offer_id: int) -> None:
    """
    Delete an offer and its workflow history.

    A contract created from the offer is kept and only loses its link.
    """
    offer = await get_offer(db, offer_id)

    if offer.converted_to_contract:
        result = await db.execute(
            update(Contract)
            .where(Contract.offer_id == offer_id)
            .values(offer_id=None)
        )
        if result.rowcount:
            logger.info(f"Detached contract from offer {offer_id}")

    await db.execute(delete(OfferWorkflowLog).where(OfferWorkflowLog.offer_id == offer_id))
    await db.delete(offer)
    await db.flush()

    logger.info(f"Offer {offer_id} deleted")


# =============================================================================
# COMMISSION RECOMPUTE
# =============================================================================


async def _compute_offer_commission(req: RecomputeRequest) -> CommissionResult:
    async with get_db_context() as db:
        return await calculate_commission_by_level(
            db,
            req.financed_amount,
            req.level_id,
            req.principal_type,
            req.principal_id,
        )


async def _store_offer_commission(req: RecomputeRequest, result: CommissionResult) -> bool:
    """Write the result on the offer. False when the offer no longer takes one."""
    async with get_db_context() as db:
        offer = await db.get(Offer, req.target)
        if not offer:
            logger.debug(f"Offer {req.target} vanished before its commission was stored")
            return False
        if offer.converted_to_contract:
            logger.info(f"Offer {offer.id} is a contract, commission left at {offer.commission}")
            return False
        if offer.ambassador_id != req.principal_id:
            logger.info(f"Offer {offer.id} changed ambassador, dropping commission for {req.principal_id}")
            return False
        offer.commission = result.amount
        logger.info(f"Offer {offer.id} commission recomputed: {result.amount} ({result.level_name or 'no level'})")
        return True


def build_offer_recomputer(window: float) -> CommissionRecomputer:
    """Recomputer writing results to the offer named by the request target."""
    return CommissionRecomputer(
        compute_fn=_compute_offer_commission,
        on_result=_store_offer_commission,
        window=window,
    )


async def schedule_commission_recompute(recomputer: CommissionRecomputer, offer: Offer) -> bool:
    """
    Queue a commission refresh after the offer's principal or level changed.

    Uses the level stored on the offer. An offer without an ambassador has
    nothing to recompute and any pending refresh is dropped.
    """
    if not offer.ambassador_id:
        await recomputer.forget(offer.id)
        return False
    return await recomputer.request(
        offer.financed_amount,
        offer.commission_level_id,
        PrincipalType.AMBASSADOR,
        offer.ambassador_id,
        target=offer.id,
    )
