"""Ambassador schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from leazr.models.ambassador import AmbassadorStatus


class AmbassadorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    commission_level_id: Optional[int] = None
    user_id: Optional[int] = None


class AmbassadorResponse(BaseModel):
    id: int
    name: str
    email: Optional[str]
    status: AmbassadorStatus
    commission_level_id: Optional[int]
    user_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class AmbassadorCommissionResponse(BaseModel):
    """One offer carrying a commission for the ambassador."""

    id: int
    amount: Decimal
    client_name: str
    date: datetime
    status: str
    description: str

    model_config = {"from_attributes": True}


class CommissionTotalsResponse(BaseModel):
    pending: Decimal = Decimal("0")
    paid: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
