"""Contract endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.auth.dependencies import require_admin
from leazr.db import get_db
from leazr.models import Contract, User
from leazr.schemas.contract import ContractResponse
from leazr.services.contracts import list_contracts

router = APIRouter(prefix="/contracts", tags=["Contracts"])


@router.get("", response_model=List[ContractResponse])
async def get_contracts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return await list_contracts(db)


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    contract = await db.get(Contract, contract_id)
    if not contract:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contract not found",
        )
    return contract
