"""Commission level configuration and commission lookup endpoints."""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.auth.dependencies import get_current_user, require_admin
from leazr.db import get_db
from leazr.models import AuditAction, CommissionLevel, CommissionRate, PrincipalType, User
from leazr.schemas.commission import (
    CommissionLevelCreate,
    CommissionLevelResponse,
    CommissionLevelUpdate,
    CommissionRateSchema,
    CommissionResponse,
)
from leazr.services.commission import calculate_commission_by_level
from leazr.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/commission-levels", tags=["Commissions"])


def _build_rates(rates: List[CommissionRateSchema]) -> List[CommissionRate]:
    return [
        CommissionRate(
            position=position,
            min_amount=r.min_amount,
            max_amount=r.max_amount,
            rate=r.rate,
            fixed_amount=r.fixed_amount,
        )
        for position, r in enumerate(rates)
    ]


async def _get_level_or_404(db: AsyncSession, level_id: int) -> CommissionLevel:
    level = await db.get(CommissionLevel, level_id)
    if not level:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Commission level not found",
        )
    return level


async def _clear_other_defaults(db: AsyncSession, level: CommissionLevel) -> None:
    """Only one default level per principal type."""
    result = await db.execute(
        select(CommissionLevel).where(
            CommissionLevel.type == level.type,
            CommissionLevel.is_default.is_(True),
            CommissionLevel.id != level.id,
        )
    )
    for other in result.scalars().all():
        other.is_default = False


@router.get("", response_model=List[CommissionLevelResponse])
async def list_levels(
    principal_type: Optional[PrincipalType] = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = select(CommissionLevel).order_by(CommissionLevel.name)
    if principal_type:
        query = query.where(CommissionLevel.type == principal_type)

    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=CommissionLevelResponse, status_code=status.HTTP_201_CREATED)
async def create_level(
    request: Request,
    data: CommissionLevelCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create a commission level. Overlapping tiers are rejected with 422."""
    level = CommissionLevel(
        name=data.name,
        type=data.type,
        is_default=data.is_default,
        rates=_build_rates(data.rates),
    )
    db.add(level)
    await db.flush()

    if level.is_default:
        await _clear_other_defaults(db, level)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_COMMISSION_LEVEL,
        target_type="commission_level",
        target_id=level.id,
        action_metadata={"name": level.name, "type": level.type.value},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(level)

    return level


@router.get("/{level_id}", response_model=CommissionLevelResponse)
async def get_level(
    level_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return await _get_level_or_404(db, level_id)


@router.put("/{level_id}", response_model=CommissionLevelResponse)
async def update_level(
    request: Request,
    level_id: int,
    data: CommissionLevelUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    level = await _get_level_or_404(db, level_id)

    if data.name is not None:
        level.name = data.name
    if data.is_default is not None:
        level.is_default = data.is_default
        if data.is_default:
            await _clear_other_defaults(db, level)
    if data.rates is not None:
        level.rates = _build_rates(data.rates)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_COMMISSION_LEVEL,
        target_type="commission_level",
        target_id=level.id,
        action_metadata=data.model_dump(mode="json", exclude_none=True),
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(level)

    return level


@router.delete("/{level_id}")
async def delete_level(
    request: Request,
    level_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    level = await _get_level_or_404(db, level_id)

    await db.delete(level)
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_COMMISSION_LEVEL,
        target_type="commission_level",
        target_id=level_id,
        action_metadata={"name": level.name},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return {"success": True}


@router.get("/{level_id}/commission", response_model=CommissionResponse)
async def get_commission(
    level_id: int,
    amount: Decimal = Query(...),
    principal_type: PrincipalType = Query(PrincipalType.AMBASSADOR),
    principal_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Commission for a financed amount. A miss returns a zero commission, not 404."""
    return await calculate_commission_by_level(
        db, amount, level_id, principal_type, principal_id
    )
