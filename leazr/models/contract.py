"""
Contract model - created when an offer is approved by the leaser or financed.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from leazr.models.base import BaseModel, Money


class ContractStatus(str, Enum):
    CONTRACT_SENT = "contract_sent"
    CONTRACT_SIGNED = "contract_signed"
    EQUIPMENT_ORDERED = "equipment_ordered"
    DELIVERED = "delivered"
    ACTIVE = "active"
    COMPLETED = "completed"


class Contract(BaseModel):
    """Leasing contract. Keeps its data when the source offer is deleted."""

    __tablename__ = "contracts"

    offer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("offers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    client_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    client_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    leaser_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    leaser_logo: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    monthly_payment: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    equipment_description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[ContractStatus] = mapped_column(
        SQLAlchemyEnum(
            ContractStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ContractStatus.CONTRACT_SENT,
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Contract(id={self.id}, offer_id={self.offer_id}, status={self.status})>"
