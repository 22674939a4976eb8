"""Leaser schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from leazr.services.ranges import validate_ranges


class LeaserRangeSchema(BaseModel):
    """One `[min_amount, max_amount] -> coefficient` row."""

    min_amount: Decimal = Field(..., ge=0)
    max_amount: Decimal = Field(..., ge=0)
    coefficient: Decimal = Field(..., gt=0)


def _check_ranges(ranges: Optional[List[LeaserRangeSchema]]) -> Optional[List[LeaserRangeSchema]]:
    if ranges:
        # RangeOverlapError is a ValueError, reported as a 422
        validate_ranges(ranges)
    return ranges


class LeaserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)
    ranges: List[LeaserRangeSchema] = Field(default_factory=list)

    @field_validator("ranges")
    @classmethod
    def check_ranges(cls, v):
        return _check_ranges(v)


class LeaserUpdate(BaseModel):
    """Fields left out are not changed; `ranges` replaces the whole list."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)
    ranges: Optional[List[LeaserRangeSchema]] = None

    @field_validator("ranges")
    @classmethod
    def check_ranges(cls, v):
        return _check_ranges(v)


class LeaserRangeResponse(LeaserRangeSchema):
    id: int
    position: int

    model_config = {"from_attributes": True}


class LeaserResponse(BaseModel):
    id: int
    name: str
    logo_url: Optional[str]
    ranges: List[LeaserRangeResponse]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class CoefficientResponse(BaseModel):
    """Coefficient lookup; both fields are null on a miss."""

    amount: Decimal
    coefficient: Optional[Decimal] = None
    range: Optional[LeaserRangeResponse] = None


class RangeGapResponse(BaseModel):
    min_amount: Decimal
    max_amount: Decimal
