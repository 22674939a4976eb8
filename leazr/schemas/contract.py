"""Contract schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from leazr.models.contract import ContractStatus


class ContractResponse(BaseModel):
    id: int
    offer_id: Optional[int]
    client_name: str
    client_id: Optional[str]
    leaser_name: str
    leaser_logo: Optional[str]
    monthly_payment: Decimal
    equipment_description: Optional[str]
    status: ContractStatus
    user_id: int
    created_at: datetime

    model_config = {"from_attributes": True}
