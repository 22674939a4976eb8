"""
Offer and workflow schemas.

Converted offers are presented as contracts: their status_info is the
"Active contract" entry whatever their workflow_status.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from leazr.models.offer import CommissionStatus, Offer, OfferType, OfferWorkflowStatus
from leazr.schemas.pricing import EquipmentItem, QuoteRequest
from leazr.services.workflow import status_metadata


class OfferCreate(QuoteRequest):
    """New offer: client details plus the calculator state."""

    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    client_id: Optional[str] = Field(None, max_length=64)
    type: Optional[OfferType] = None
    remarks: Optional[str] = Field(None, max_length=5000)


class OfferUpdate(BaseModel):
    """
    Editable fields of an offer that is not a contract yet.

    Changing the ambassador or the commission level schedules a commission
    recompute; the new amount is stored shortly after the response.
    """

    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    client_id: Optional[str] = Field(None, max_length=64)
    remarks: Optional[str] = Field(None, max_length=5000)
    ambassador_id: Optional[int] = None
    commission_level_id: Optional[int] = None


class StatusUpdateRequest(BaseModel):
    status: OfferWorkflowStatus
    reason: Optional[str] = Field(None, max_length=2000)


class InfoRequest(BaseModel):
    requested_docs: List[str] = Field(..., min_length=1)
    custom_message: Optional[str] = Field(None, max_length=2000)


class InfoResponseRequest(BaseModel):
    approve: bool


class CommissionStatusUpdate(BaseModel):
    status: CommissionStatus


class StatusInfoResponse(BaseModel):
    id: str
    label: str
    color: str
    text_color: str
    icon: str
    progress: int

    model_config = {"from_attributes": True}


class EquipmentResponse(EquipmentItem):
    id: int
    position: int

    model_config = {"from_attributes": True}


class OfferResponse(BaseModel):
    id: int
    client_name: str
    client_email: Optional[str]
    client_id: Optional[str]
    type: OfferType
    leaser_id: Optional[int]
    amount: Decimal
    coefficient: Decimal
    monthly_payment: Decimal
    financed_amount: Decimal
    margin: Decimal
    margin_difference: Decimal
    commission: Decimal
    commission_status: CommissionStatus
    commission_paid_at: Optional[datetime]
    ambassador_id: Optional[int]
    commission_level_id: Optional[int]
    user_id: int
    workflow_status: OfferWorkflowStatus
    previous_status: Optional[OfferWorkflowStatus]
    converted_to_contract: bool
    remarks: Optional[str]
    equipment: List[EquipmentResponse]
    created_at: datetime
    updated_at: Optional[datetime]

    status_info: Optional[StatusInfoResponse] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_offer(cls, offer: Offer) -> "OfferResponse":
        response = cls.model_validate(offer)
        response.status_info = StatusInfoResponse.model_validate(
            status_metadata(offer.workflow_status, offer.converted_to_contract)
        )
        return response


class WorkflowLogResponse(BaseModel):
    id: int
    offer_id: int
    user_id: int
    user_name: Optional[str] = None
    previous_status: str
    new_status: str
    reason: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class TransitionResponse(BaseModel):
    """Result of a status change; contract_error is set when conversion failed."""

    offer: OfferResponse
    log: WorkflowLogResponse
    contract_id: Optional[int] = None
    contract_error: Optional[str] = None
