"""
Offer endpoints: creation, listing and the approval workflow.

Status changes are admin-only. Ambassadors create offers and see the
offers they created.
"""

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.auth.dependencies import get_current_user, require_admin
from leazr.db import get_db
from leazr.models import AuditAction, Offer, OfferWorkflowLog, OfferWorkflowStatus, User, UserRole
from leazr.schemas.offer import (
    CommissionStatusUpdate,
    InfoRequest,
    InfoResponseRequest,
    OfferCreate,
    OfferResponse,
    OfferUpdate,
    StatusInfoResponse,
    StatusUpdateRequest,
    TransitionResponse,
    WorkflowLogResponse,
)
from leazr.services import offers as offer_service
from leazr.services import workflow
from leazr.services.commission import update_commission_status
from leazr.services.errors import (
    InvalidTransitionError,
    OfferError,
    OfferLockedError,
    OfferNotFoundError,
    WorkflowLogError,
)
from leazr.services.recompute import CommissionRecomputer
from leazr.services.saga import SagaError
from leazr.utils.audit import get_client_ip, log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/offers", tags=["Offers"])


def _raise_http(e: OfferError) -> NoReturn:
    if isinstance(e, OfferNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, (InvalidTransitionError, OfferLockedError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, WorkflowLogError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=code, detail=str(e)) from e


def get_recomputer(request: Request) -> CommissionRecomputer:
    """Commission recomputer created in the app lifespan."""
    return request.app.state.recomputer


def _check_visible(offer: Offer, user: User) -> None:
    if user.role != UserRole.ADMIN and offer.user_id != user.id:
        # Same answer as a missing offer
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Offer {offer.id} not found",
        )


def _log_response(log: OfferWorkflowLog) -> WorkflowLogResponse:
    response = WorkflowLogResponse.model_validate(log)
    response.user_name = log.user.display_name if log.user else None
    return response


async def _load_offer(db: AsyncSession, offer_id: int, user: User) -> Offer:
    try:
        offer = await offer_service.get_offer(db, offer_id)
    except OfferNotFoundError as e:
        _raise_http(e)
    _check_visible(offer, user)
    return offer


async def _transition_response(db: AsyncSession, result: workflow.TransitionResult) -> TransitionResponse:
    await db.refresh(result.offer)
    await db.refresh(result.log)
    return TransitionResponse(
        offer=OfferResponse.from_offer(result.offer),
        log=_log_response(result.log),
        contract_id=result.contract_id,
        contract_error=result.contract_error,
    )


@router.get("/statuses", response_model=List[StatusInfoResponse])
async def list_statuses(current_user: User = Depends(get_current_user)):
    """Display metadata of every workflow status, in lifecycle order."""
    return list(workflow.STATUS_METADATA.values())


@router.get("", response_model=List[OfferResponse])
async def list_offers(
    converted: Optional[bool] = Query(False),
    workflow_status: Optional[OfferWorkflowStatus] = Query(None, alias="status"),
    ambassador_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Offers, newest first. converted=true lists the offers turned into contracts."""
    offers = await offer_service.get_offers(db, converted, workflow_status, ambassador_id)
    if current_user.role != UserRole.ADMIN:
        offers = [offer for offer in offers if offer.user_id == current_user.id]
    return [OfferResponse.from_offer(offer) for offer in offers]


@router.post("", response_model=OfferResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    request: Request,
    data: OfferCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a draft offer priced against the leaser's ranges."""
    try:
        offer = await offer_service.create_offer(db, data, current_user.id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except SagaError as e:
        logger.error(f"Offer creation failed at {e.step}, compensated {e.compensated}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Offer could not be created",
        )

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_OFFER,
        target_type="offer",
        target_id=offer.id,
        action_metadata={"client_name": offer.client_name, "monthly_payment": str(offer.monthly_payment)},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return OfferResponse.from_offer(offer)


@router.get("/{offer_id}", response_model=OfferResponse)
async def get_offer(
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    offer = await _load_offer(db, offer_id, current_user)
    return OfferResponse.from_offer(offer)


@router.patch("/{offer_id}", response_model=OfferResponse)
async def update_offer(
    offer_id: int,
    data: OfferUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    recomputer: CommissionRecomputer = Depends(get_recomputer),
):
    """Edit client details, remarks, ambassador or level. Converted offers answer 409."""
    await _load_offer(db, offer_id, current_user)
    try:
        offer = await offer_service.update_offer(
            db, offer_id, data.model_dump(exclude_unset=True)
        )
    except OfferError as e:
        _raise_http(e)

    await db.commit()
    await db.refresh(offer)

    if data.model_fields_set & {"ambassador_id", "commission_level_id"}:
        await offer_service.schedule_commission_recompute(recomputer, offer)

    return OfferResponse.from_offer(offer)


@router.delete("/{offer_id}")
async def delete_offer(
    request: Request,
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    recomputer: CommissionRecomputer = Depends(get_recomputer),
):
    try:
        await offer_service.delete_offer(db, offer_id)
    except OfferError as e:
        _raise_http(e)
    await recomputer.forget(offer_id)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_OFFER,
        target_type="offer",
        target_id=offer_id,
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return {"success": True}


@router.post("/{offer_id}/status", response_model=TransitionResponse)
async def change_status(
    offer_id: int,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Move an offer to another status. Disallowed moves answer 409."""
    try:
        result = await workflow.update_offer_status(
            db, offer_id, data.status, current_user.id, data.reason
        )
    except OfferError as e:
        _raise_http(e)
    return await _transition_response(db, result)


@router.post("/{offer_id}/info-request", response_model=TransitionResponse)
async def request_info(
    offer_id: int,
    data: InfoRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        result = await workflow.request_info(
            db, offer_id, data.requested_docs, current_user.id, data.custom_message
        )
    except OfferError as e:
        _raise_http(e)
    return await _transition_response(db, result)


@router.post("/{offer_id}/info-response", response_model=TransitionResponse)
async def process_info_response(
    offer_id: int,
    data: InfoResponseRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Resume an offer waiting for information: approve -> leaser_review, else rejected."""
    try:
        result = await workflow.process_info_response(
            db, offer_id, data.approve, current_user.id
        )
    except OfferError as e:
        _raise_http(e)
    return await _transition_response(db, result)


@router.get("/{offer_id}/logs", response_model=List[WorkflowLogResponse])
async def get_logs(
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Status history, newest first."""
    await _load_offer(db, offer_id, current_user)
    logs = await workflow.get_workflow_logs(db, offer_id)
    return [_log_response(log) for log in logs]


@router.patch("/{offer_id}/commission-status", response_model=OfferResponse)
async def change_commission_status(
    request: Request,
    offer_id: int,
    data: CommissionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        offer = await update_commission_status(db, offer_id, data.status)
    except OfferError as e:
        _raise_http(e)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_COMMISSION_STATUS,
        target_type="offer",
        target_id=offer_id,
        action_metadata={"status": data.status.value},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(offer)

    return OfferResponse.from_offer(offer)
