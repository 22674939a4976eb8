"""
Contract creation from offers.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.models import Contract, Offer

logger = logging.getLogger(__name__)


async def create_contract_from_offer(
    db: AsyncSession,
    offer: Offer,
    leaser_name: str,
    leaser_logo: Optional[str],
    user_id: int,
) -> Contract:
    """
    Create the contract of an offer.

    The contract copies what it needs from the offer so it survives
    the offer being deleted later. Flushed, not committed.
    """
    contract = Contract(
        offer_id=offer.id,
        client_name=offer.client_name,
        client_id=offer.client_id,
        leaser_name=leaser_name,
        leaser_logo=leaser_logo,
        monthly_payment=offer.monthly_payment,
        equipment_description=offer.equipment_description or None,
        user_id=user_id,
    )
    db.add(contract)
    await db.flush()

    logger.info(f"Contract {contract.id} created from offer {offer.id} ({leaser_name})")
    return contract


async def get_contract_for_offer(db: AsyncSession, offer_id: int) -> Optional[Contract]:
    result = await db.execute(
        select(Contract).where(Contract.offer_id == offer_id).limit(1)
    )
    return result.scalar_one_or_none()


async def list_contracts(db: AsyncSession) -> List[Contract]:
    result = await db.execute(
        select(Contract).order_by(Contract.created_at.desc(), Contract.id.desc())
    )
    return list(result.scalars().all())
