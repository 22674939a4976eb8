"""Commission level schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from leazr.models.commission import PrincipalType
from leazr.services.ranges import validate_ranges


class CommissionRateSchema(BaseModel):
    """A tier: `rate` percent of the financed amount, or `fixed_amount` when set."""

    min_amount: Decimal = Field(..., ge=0)
    max_amount: Decimal = Field(..., ge=0)
    rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    fixed_amount: Optional[Decimal] = Field(None, ge=0)


def _check_rates(rates: Optional[List[CommissionRateSchema]]) -> Optional[List[CommissionRateSchema]]:
    if rates:
        validate_ranges(rates)
    return rates


class CommissionLevelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: PrincipalType = PrincipalType.AMBASSADOR
    is_default: bool = False
    rates: List[CommissionRateSchema] = Field(default_factory=list)

    @field_validator("rates")
    @classmethod
    def check_rates(cls, v):
        return _check_rates(v)


class CommissionLevelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_default: Optional[bool] = None
    rates: Optional[List[CommissionRateSchema]] = None

    @field_validator("rates")
    @classmethod
    def check_rates(cls, v):
        return _check_rates(v)


class CommissionRateResponse(CommissionRateSchema):
    id: int
    position: int

    model_config = {"from_attributes": True}


class CommissionLevelResponse(BaseModel):
    id: int
    name: str
    type: PrincipalType
    is_default: bool
    rates: List[CommissionRateResponse]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class CommissionResponse(BaseModel):
    """Resolved commission; zero amount and empty level name on a miss."""

    amount: Decimal
    rate: Decimal
    level_name: str

    model_config = {"from_attributes": True}
