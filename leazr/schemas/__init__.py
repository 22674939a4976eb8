"""Pydantic schemas for request/response validation."""

from leazr.schemas.ambassador import (
    AmbassadorCommissionResponse,
    AmbassadorCreate,
    AmbassadorResponse,
    CommissionTotalsResponse,
)
from leazr.schemas.auth import LoginRequest, LoginResponse, UserResponse
from leazr.schemas.commission import (
    CommissionLevelCreate,
    CommissionLevelResponse,
    CommissionLevelUpdate,
    CommissionRateSchema,
    CommissionResponse,
)
from leazr.schemas.contract import ContractResponse
from leazr.schemas.leaser import (
    CoefficientResponse,
    LeaserCreate,
    LeaserRangeSchema,
    LeaserResponse,
    LeaserUpdate,
    RangeGapResponse,
)
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
from leazr.schemas.pricing import (
    EquipmentItem,
    MarginRequest,
    MarginResponse,
    QuoteRequest,
    QuoteResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "UserResponse",
    # Leaser
    "LeaserCreate",
    "LeaserUpdate",
    "LeaserRangeSchema",
    "LeaserResponse",
    "CoefficientResponse",
    "RangeGapResponse",
    # Commission
    "CommissionLevelCreate",
    "CommissionLevelUpdate",
    "CommissionLevelResponse",
    "CommissionRateSchema",
    "CommissionResponse",
    # Ambassador
    "AmbassadorCreate",
    "AmbassadorResponse",
    "AmbassadorCommissionResponse",
    "CommissionTotalsResponse",
    # Pricing
    "EquipmentItem",
    "QuoteRequest",
    "QuoteResponse",
    "MarginRequest",
    "MarginResponse",
    # Offer
    "OfferCreate",
    "OfferUpdate",
    "OfferResponse",
    "StatusUpdateRequest",
    "StatusInfoResponse",
    "InfoRequest",
    "InfoResponseRequest",
    "CommissionStatusUpdate",
    "WorkflowLogResponse",
    "TransitionResponse",
    # Contract
    "ContractResponse",
]
