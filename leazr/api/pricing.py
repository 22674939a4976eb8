"""Calculator endpoints: price an equipment list without saving anything."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.auth.dependencies import get_current_user
from leazr.db import get_db
from leazr.models import PrincipalType, User
from leazr.schemas.pricing import MarginRequest, MarginResponse, QuoteRequest, QuoteResponse
from leazr.services.commission import calculate_commission_by_level
from leazr.services.offers import build_configuration, get_leaser
from leazr.services.pricing import calculate_margin_from_monthly_payment, quote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])


async def _leaser_or_404(db: AsyncSession, leaser_id):
    leaser = await get_leaser(db, leaser_id)
    if leaser_id and not leaser:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Leaser not found",
        )
    return leaser


@router.post("/quote", response_model=QuoteResponse)
async def price_equipment(
    data: QuoteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Price an equipment list against a leaser.

    With adapt_monthly_payment=false the monthly payment stays the sum of
    the per-item payments; with true it follows the global coefficient.
    """
    leaser = await _leaser_or_404(db, data.leaser_id)

    try:
        priced = quote(build_configuration(leaser, data))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    calculation = priced.calculation
    response = QuoteResponse(
        total_purchase_price=calculation.total_purchase_price,
        normal_margin_amount=calculation.normal_margin_amount,
        normal_margin_percentage=calculation.normal_margin_percentage,
        normal_monthly_payment=calculation.normal_monthly_payment,
        adjusted_margin_amount=calculation.adjusted_margin_amount,
        adjusted_margin_percentage=calculation.adjusted_margin_percentage,
        adjusted_monthly_payment=calculation.adjusted_monthly_payment,
        margin_difference=calculation.margin_difference,
        current_coefficient=calculation.current_coefficient,
        global_coefficient=calculation.global_coefficient,
        total_financed_amount=calculation.total_financed_amount,
        adapt_monthly_payment=priced.adjustment.active,
        coefficient_changed=priced.adjustment.coefficient_changed,
        monthly_payment=priced.monthly_payment,
        financed_amount=priced.financed_amount,
        coefficient=priced.coefficient,
    )

    if data.ambassador_id:
        commission = await calculate_commission_by_level(
            db,
            priced.financed_amount,
            data.commission_level_id,
            PrincipalType.AMBASSADOR,
            data.ambassador_id,
        )
        response.commission = commission.amount
        response.commission_level_name = commission.level_name

    return response


@router.post("/margin", response_model=MarginResponse)
async def margin_from_monthly_payment(
    data: MarginRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Margin needed to lease `purchase_price` for `target_monthly_payment`."""
    leaser = await _leaser_or_404(db, data.leaser_id)
    ranges = leaser.ranges if leaser else []
    return calculate_margin_from_monthly_payment(
        data.purchase_price,
        data.target_monthly_payment,
        ranges,
    )
