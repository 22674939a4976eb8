"""Leaser configuration and coefficient lookup endpoints."""

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.auth.dependencies import get_current_user, require_admin
from leazr.db import get_db
from leazr.models import AuditAction, Leaser, LeaserRange, User
from leazr.schemas.leaser import (
    CoefficientResponse,
    LeaserCreate,
    LeaserRangeResponse,
    LeaserRangeSchema,
    LeaserResponse,
    LeaserUpdate,
    RangeGapResponse,
)
from leazr.services.ranges import find_gaps, resolve_range
from leazr.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/leasers", tags=["Leasers"])


def _build_ranges(ranges: List[LeaserRangeSchema]) -> List[LeaserRange]:
    return [
        LeaserRange(
            position=position,
            min_amount=r.min_amount,
            max_amount=r.max_amount,
            coefficient=r.coefficient,
        )
        for position, r in enumerate(ranges)
    ]


async def _get_leaser_or_404(db: AsyncSession, leaser_id: int) -> Leaser:
    leaser = await db.get(Leaser, leaser_id)
    if not leaser:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Leaser not found",
        )
    return leaser


@router.get("", response_model=List[LeaserResponse])
async def list_leasers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(select(Leaser).order_by(Leaser.name))
    return result.scalars().all()


@router.post("", response_model=LeaserResponse, status_code=status.HTTP_201_CREATED)
async def create_leaser(
    request: Request,
    data: LeaserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create a leaser. Overlapping ranges are rejected with 422."""
    leaser = Leaser(
        name=data.name,
        logo_url=data.logo_url,
        ranges=_build_ranges(data.ranges),
    )
    db.add(leaser)
    await db.flush()

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_LEASER,
        target_type="leaser",
        target_id=leaser.id,
        action_metadata={"name": leaser.name, "ranges": len(data.ranges)},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(leaser)

    return leaser


@router.get("/{leaser_id}", response_model=LeaserResponse)
async def get_leaser(
    leaser_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await _get_leaser_or_404(db, leaser_id)


@router.put("/{leaser_id}", response_model=LeaserResponse)
async def update_leaser(
    request: Request,
    leaser_id: int,
    data: LeaserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Update a leaser in place; `ranges`, when given, replaces all ranges."""
    leaser = await _get_leaser_or_404(db, leaser_id)

    if data.name is not None:
        leaser.name = data.name
    if data.logo_url is not None:
        leaser.logo_url = data.logo_url
    if data.ranges is not None:
        leaser.ranges = _build_ranges(data.ranges)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_LEASER,
        target_type="leaser",
        target_id=leaser.id,
        action_metadata=data.model_dump(mode="json", exclude_none=True),
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(leaser)

    return leaser


@router.delete("/{leaser_id}")
async def delete_leaser(
    request: Request,
    leaser_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    leaser = await _get_leaser_or_404(db, leaser_id)

    await db.delete(leaser)
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_LEASER,
        target_type="leaser",
        target_id=leaser_id,
        action_metadata={"name": leaser.name},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return {"success": True}


@router.get("/{leaser_id}/coefficient", response_model=CoefficientResponse)
async def get_coefficient(
    leaser_id: int,
    amount: Decimal = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Coefficient for a financed amount; nulls when no range covers it."""
    leaser = await _get_leaser_or_404(db, leaser_id)
    matched = resolve_range(leaser.ranges, amount)

    if matched is None:
        return CoefficientResponse(amount=amount)

    return CoefficientResponse(
        amount=amount,
        coefficient=matched.coefficient,
        range=LeaserRangeResponse.model_validate(matched),
    )


@router.get("/{leaser_id}/gaps", response_model=List[RangeGapResponse])
async def get_gaps(
    leaser_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Amounts between configured ranges that no coefficient covers."""
    leaser = await _get_leaser_or_404(db, leaser_id)
    return [
        RangeGapResponse(min_amount=low, max_amount=high)
        for low, high in find_gaps(leaser.ranges)
    ]
