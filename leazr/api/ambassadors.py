"""Ambassador endpoints and commission ledger."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.auth.dependencies import get_current_user, require_admin
from leazr.db import get_db
from leazr.models import Ambassador, AuditAction, CommissionLevel, User, UserRole
from leazr.schemas.ambassador import (
    AmbassadorCommissionResponse,
    AmbassadorCreate,
    AmbassadorResponse,
    CommissionTotalsResponse,
)
from leazr.services.commission import (
    calculate_total_ambassador_commissions,
    get_ambassador_commissions,
)
from leazr.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/ambassadors", tags=["Ambassadors"])


async def _get_visible_ambassador(db: AsyncSession, ambassador_id: int, user: User) -> Ambassador:
    """Admins see every ambassador, ambassadors only themselves."""
    ambassador = await db.get(Ambassador, ambassador_id)
    if not ambassador:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ambassador not found",
        )

    if user.role != UserRole.ADMIN and ambassador.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return ambassador


@router.get("", response_model=List[AmbassadorResponse])
async def list_ambassadors(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    result = await db.execute(select(Ambassador).order_by(Ambassador.name))
    return result.scalars().all()


@router.post("", response_model=AmbassadorResponse, status_code=status.HTTP_201_CREATED)
async def create_ambassador(
    request: Request,
    data: AmbassadorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if data.commission_level_id and not await db.get(CommissionLevel, data.commission_level_id):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Commission level not found",
        )

    ambassador = Ambassador(**data.model_dump())
    db.add(ambassador)
    await db.flush()

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_AMBASSADOR,
        target_type="ambassador",
        target_id=ambassador.id,
        action_metadata={"name": ambassador.name},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(ambassador)

    return ambassador


@router.get("/{ambassador_id}/commissions", response_model=List[AmbassadorCommissionResponse])
async def list_commissions(
    ambassador_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await _get_visible_ambassador(db, ambassador_id, current_user)
    return await get_ambassador_commissions(db, ambassador_id)


@router.get("/{ambassador_id}/commissions/totals", response_model=CommissionTotalsResponse)
async def commission_totals(
    ambassador_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await _get_visible_ambassador(db, ambassador_id, current_user)
    totals = await calculate_total_ambassador_commissions(db, ambassador_id)
    return CommissionTotalsResponse(**totals)
