"""Calculator schemas."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class EquipmentItem(BaseModel):
    """Equipment line as entered in the calculator."""

    title: str = Field(default="", max_length=255)
    purchase_price: Decimal = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    margin: Decimal = Field(default=Decimal("0"), ge=0, description="Percent of the purchase price")
    monthly_payment: Optional[Decimal] = Field(None, ge=0, description="Stored per-unit payment, if any")


class QuoteRequest(BaseModel):
    """
    Whole calculator state, validated as a unit.

    Without leaser_id the default leaser's ranges are used.
    """

    leaser_id: Optional[int] = None
    equipment: List[EquipmentItem] = Field(..., min_length=1)
    adapt_monthly_payment: bool = False
    ambassador_id: Optional[int] = None
    commission_level_id: Optional[int] = None

    @model_validator(mode="after")
    def check_commission_principal(self):
        if self.commission_level_id is not None and self.ambassador_id is None:
            raise ValueError("A commission level requires an ambassador")
        return self


class QuoteResponse(BaseModel):
    total_purchase_price: Decimal
    normal_margin_amount: Decimal
    normal_margin_percentage: Decimal
    normal_monthly_payment: Decimal
    adjusted_margin_amount: Decimal
    adjusted_margin_percentage: Decimal
    adjusted_monthly_payment: Decimal
    margin_difference: Decimal
    current_coefficient: Optional[Decimal]
    global_coefficient: Optional[Decimal]
    total_financed_amount: Decimal

    # After applying the global adjustment toggle
    adapt_monthly_payment: bool
    coefficient_changed: bool
    monthly_payment: Decimal
    financed_amount: Decimal
    coefficient: Optional[Decimal]

    commission: Optional[Decimal] = None
    commission_level_name: Optional[str] = None


class MarginRequest(BaseModel):
    leaser_id: Optional[int] = None
    purchase_price: Decimal = Field(..., gt=0)
    target_monthly_payment: Decimal = Field(..., gt=0)


class MarginResponse(BaseModel):
    """Margin needed for a target monthly payment; zeros when unreachable."""

    percentage: Decimal
    amount: Decimal
    coefficient: Optional[Decimal]

    model_config = {"from_attributes": True}
