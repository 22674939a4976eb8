"""
Offer workflow: statuses, allowed transitions and their side effects.

Flow:
    draft -> sent -> valid_itc -> approved -> leaser_review
          -> leaser_approved -> financed
    any open status -> rejected
    any open status -> info_requested -> (approve) leaser_review
                                      -> (reject)  rejected

Every transition appends an OfferWorkflowLog row, committed before the
status itself is written. Reaching leaser_approved or financed creates the
contract and sets converted_to_contract.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leazr.config import settings
from leazr.models import Contract, Offer, OfferWorkflowLog, OfferWorkflowStatus
from leazr.services.contracts import create_contract_from_offer
from leazr.services.errors import (
    InvalidTransitionError,
    OfferNotFoundError,
    WorkflowLogError,
)
from leazr.services.saga import Saga, SagaError

logger = logging.getLogger(__name__)

S = OfferWorkflowStatus


# =============================================================================
# STATUS METADATA
# =============================================================================


@dataclass(frozen=True)
class StatusInfo:
    """Display metadata of a status."""

    id: str
    label: str
    color: str
    text_color: str
    icon: str
    progress: int


STATUS_METADATA: Dict[OfferWorkflowStatus, StatusInfo] = {
    S.DRAFT: StatusInfo("draft", "Draft", "bg-gray-100", "text-gray-700", "pencil", 10),
    S.SENT: StatusInfo("sent", "Sent", "bg-orange-100", "text-orange-700", "send-horizontal", 20),
    S.VALID_ITC: StatusInfo("valid_itc", "ITC validated", "bg-purple-100", "text-purple-700", "sparkle", 40),
    S.INFO_REQUESTED: StatusInfo("info_requested", "Information requested", "bg-yellow-100", "text-yellow-700", "info", 50),
    S.APPROVED: StatusInfo("approved", "Approved", "bg-emerald-100", "text-emerald-700", "check", 60),
    S.LEASER_REVIEW: StatusInfo("leaser_review", "Leaser review", "bg-blue-100", "text-blue-700", "building", 80),
    S.LEASER_APPROVED: StatusInfo("leaser_approved", "Approved by leaser", "bg-teal-100", "text-teal-700", "check-circle", 90),
    S.FINANCED: StatusInfo("financed", "Financed", "bg-green-100", "text-green-700", "star", 100),
    S.REJECTED: StatusInfo("rejected", "Rejected", "bg-red-100", "text-red-700", "x", 0),
}

CONVERTED_STATUS_INFO = StatusInfo("contract", "Active contract", "bg-green-100", "text-green-800", "check", 100)


def status_metadata(status: Union[str, OfferWorkflowStatus, None], converted: bool = False) -> StatusInfo:
    """Metadata for a status; unknown values fall back to draft."""
    if converted:
        return CONVERTED_STATUS_INFO
    try:
        return STATUS_METADATA[OfferWorkflowStatus(status)]
    except ValueError:
        return STATUS_METADATA[S.DRAFT]


# =============================================================================
# TRANSITION TABLE
# =============================================================================

OPEN_STATUSES: FrozenSet[OfferWorkflowStatus] = frozenset(
    {S.DRAFT, S.SENT, S.VALID_ITC, S.APPROVED, S.LEASER_REVIEW}
)
TERMINAL_STATUSES: FrozenSet[OfferWorkflowStatus] = frozenset({S.FINANCED, S.REJECTED})
# Reaching one of these converts the offer into a contract
CONTRACT_STATUSES: FrozenSet[OfferWorkflowStatus] = frozenset({S.LEASER_APPROVED, S.FINANCED})

_FROM_OPEN = frozenset({S.INFO_REQUESTED, S.LEASER_APPROVED, S.FINANCED, S.REJECTED})

TRANSITIONS: Dict[OfferWorkflowStatus, FrozenSet[OfferWorkflowStatus]] = {
    **{status: (OPEN_STATUSES - {status}) | _FROM_OPEN for status in OPEN_STATUSES},
    # Left only through process_info_response()
    S.INFO_REQUESTED: frozenset({S.LEASER_REVIEW, S.REJECTED}),
    S.LEASER_APPROVED: frozenset({S.FINANCED}),
    S.FINANCED: frozenset(),
    S.REJECTED: frozenset(),
}


def allowed_transitions(status: OfferWorkflowStatus) -> FrozenSet[OfferWorkflowStatus]:
    return TRANSITIONS.get(OfferWorkflowStatus(status), frozenset())


def can_transition(current: OfferWorkflowStatus, requested: OfferWorkflowStatus) -> bool:
    return OfferWorkflowStatus(requested) in allowed_transitions(current)


# =============================================================================
# TRANSITIONS
# =============================================================================


@dataclass
class TransitionResult:
    offer: Offer
    log: OfferWorkflowLog
    previous_status: OfferWorkflowStatus
    new_status: OfferWorkflowStatus
    contract_id: Optional[int] = None
    contract_error: Optional[str] = None


async def _get_offer(db: AsyncSession, offer_id: int) -> Offer:
    offer = await db.get(Offer, offer_id)
    if not offer:
        raise OfferNotFoundError(offer_id)
    return offer


async def _write_log(
    db: AsyncSession,
    offer: Offer,
    user_id: int,
    previous_status: OfferWorkflowStatus,
    new_status: OfferWorkflowStatus,
    reason: Optional[str],
) -> OfferWorkflowLog:
    """Append and commit the log row. Nothing else is written if this fails."""
    offer_id = offer.id
    log = OfferWorkflowLog(
        offer_id=offer_id,
        user_id=user_id,
        previous_status=previous_status.value,
        new_status=new_status.value,
        reason=reason,
    )
    db.add(log)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to log transition of offer {offer_id}: {e}", exc_info=True)
        raise WorkflowLogError(f"Could not record transition of offer {offer_id}") from e
    return log


async def _convert_to_contract(db: AsyncSession, offer: Offer, user_id: int) -> Contract:
    """Create the contract and flag the offer, compensating on failure."""
    leaser = offer.leaser
    leaser_name = leaser.name if leaser else settings.default_leaser_name
    leaser_logo = leaser.logo_url if leaser else settings.default_leaser_logo

    async def create_contract(ctx):
        contract = await create_contract_from_offer(db, offer, leaser_name, leaser_logo, user_id)
        await db.commit()
        return contract

    async def delete_contract(ctx):
        await db.rollback()
        await db.delete(ctx["create_contract"])
        await db.commit()

    async def mark_converted(ctx):
        offer.converted_to_contract = True
        await db.commit()

    saga = Saga(f"convert_offer_{offer.id}")
    saga.add_step("create_contract", create_contract, delete_contract)
    saga.add_step("mark_converted", mark_converted)
    context = await saga.run()
    return context["create_contract"]


async def _transition(
    db: AsyncSession,
    offer_id: int,
    new_status: Union[str, OfferWorkflowStatus],
    user_id: int,
    reason: Optional[str] = None,
    resuming: bool = False,
) -> TransitionResult:
    new_status = OfferWorkflowStatus(new_status)
    offer = await _get_offer(db, offer_id)
    current = offer.workflow_status

    if current == S.INFO_REQUESTED and not resuming:
        raise InvalidTransitionError(current.value, new_status.value)
    if not can_transition(current, new_status):
        raise InvalidTransitionError(current.value, new_status.value)

    logger.info(
        f"Updating offer {offer_id} from {current.value} to {new_status.value} "
        f"with reason: {reason or 'none'}"
    )

    log = await _write_log(db, offer, user_id, current, new_status, reason)
    log_id = log.id

    try:
        offer.workflow_status = new_status
        if new_status == S.INFO_REQUESTED:
            offer.previous_status = current
        elif current == S.INFO_REQUESTED:
            offer.previous_status = None
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        # The committed log row now describes a transition that did not happen
        logger.error(
            f"Status update of offer {offer_id} failed after log {log_id} was written: {e}",
            exc_info=True,
        )
        raise

    result = TransitionResult(
        offer=offer,
        log=log,
        previous_status=current,
        new_status=new_status,
    )

    if new_status in CONTRACT_STATUSES and not offer.converted_to_contract:
        try:
            contract = await _convert_to_contract(db, offer, user_id)
            result.contract_id = contract.id
        except SagaError as e:
            # A failed flush leaves the session waiting for a rollback
            await db.rollback()
            await db.refresh(offer)
            await db.refresh(log)
            logger.error(
                f"Offer {offer_id} is {new_status.value} but no contract was created: {e.__cause__}"
            )
            result.contract_error = str(e.__cause__ or e)

    return result


async def update_offer_status(
    db: AsyncSession,
    offer_id: int,
    new_status: Union[str, OfferWorkflowStatus],
    user_id: int,
    reason: Optional[str] = None,
) -> TransitionResult:
    """
    Move an offer to `new_status`.

    Raises:
        OfferNotFoundError: unknown offer
        InvalidTransitionError: not allowed by TRANSITIONS, or the offer is
            waiting for information (use process_info_response)
        WorkflowLogError: the log row could not be written
    """
    return await _transition(db, offer_id, new_status, user_id, reason)


async def request_info(
    db: AsyncSession,
    offer_id: int,
    requested_docs: Sequence[str],
    user_id: int,
    custom_message: Optional[str] = None,
) -> TransitionResult:
    """Pause an offer while documents are requested; the current status is kept in previous_status."""
    reason = f"Additional information requested: {', '.join(requested_docs)}"
    if custom_message:
        reason = f"{reason}. {custom_message}"
    return await _transition(db, offer_id, S.INFO_REQUESTED, user_id, reason)


async def process_info_response(
    db: AsyncSession,
    offer_id: int,
    approve: bool,
    user_id: int,
) -> TransitionResult:
    """Resume an offer waiting for information: approve -> leaser_review, reject -> rejected."""
    offer = await _get_offer(db, offer_id)
    new_status = S.LEASER_REVIEW if approve else S.REJECTED
    if offer.workflow_status != S.INFO_REQUESTED:
        raise InvalidTransitionError(offer.workflow_status.value, new_status.value)

    reason = (
        "Additional information accepted"
        if approve
        else "Additional information insufficient"
    )
    return await _transition(db, offer_id, new_status, user_id, reason, resuming=True)


async def get_workflow_logs(db: AsyncSession, offer_id: int) -> List[OfferWorkflowLog]:
    """Transition history of an offer, newest first."""
    result = await db.execute(
        select(OfferWorkflowLog)
        .where(OfferWorkflowLog.offer_id == offer_id)
        .order_by(OfferWorkflowLog.created_at.desc(), OfferWorkflowLog.id.desc())
    )
    return list(result.scalars().all())
