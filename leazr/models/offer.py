"""
Offer model and its equipment line items.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leazr.models.base import Base, BaseModel, Money, Rate

if TYPE_CHECKING:
    from leazr.models.ambassador import Ambassador
    from leazr.models.leaser import Leaser
    from leazr.models.workflow import OfferWorkflowLog


class OfferWorkflowStatus(str, Enum):
    """Stage of an offer in the approval lifecycle."""
    DRAFT = "draft"
    SENT = "sent"
    VALID_ITC = "valid_itc"
    APPROVED = "approved"
    LEASER_REVIEW = "leaser_review"
    LEASER_APPROVED = "leaser_approved"
    FINANCED = "financed"
    REJECTED = "rejected"
    INFO_REQUESTED = "info_requested"  # Paused while documents are requested


class OfferType(str, Enum):
    ADMIN_OFFER = "admin_offer"
    INTERNAL_OFFER = "internal_offer"
    PARTNER_OFFER = "partner_offer"
    AMBASSADOR_OFFER = "ambassador_offer"


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


def _enum_column(enum_cls):
    return SQLAlchemyEnum(
        enum_cls,
        values_callable=lambda x: [e.value for e in x],
    )


class Offer(BaseModel):
    """
    A leasing offer for a client.

    `workflow_status` is only changed through the workflow service, which
    appends an OfferWorkflowLog row for every transition. Once
    `converted_to_contract` is set the offer is presented as a contract
    and is read-only.
    """

    __tablename__ = "offers"

    # Client
    client_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    client_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    client_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="Reference of the client in the CRM",
    )

    type: Mapped[OfferType] = mapped_column(
        _enum_column(OfferType),
        default=OfferType.ADMIN_OFFER,
        nullable=False,
    )
    leaser_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("leasers.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Financials
    amount: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0"),
        nullable=False,
        comment="Total purchase price of the equipment",
    )
    coefficient: Mapped[Decimal] = mapped_column(
        Rate,
        default=Decimal("0"),
        nullable=False,
    )
    monthly_payment: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0"),
        nullable=False,
    )
    financed_amount: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0"),
        nullable=False,
    )
    margin: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0"),
        nullable=False,
    )
    margin_difference: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0"),
        nullable=False,
        comment="Margin lost (positive) or gained with the global coefficient",
    )

    # Commission
    commission: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0"),
        nullable=False,
    )
    commission_status: Mapped[CommissionStatus] = mapped_column(
        _enum_column(CommissionStatus),
        default=CommissionStatus.PENDING,
        nullable=False,
    )
    commission_paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    ambassador_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("ambassadors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    commission_level_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("commission_levels.id", ondelete="SET NULL"),
        nullable=True,
        comment="Level chosen for the offer; null uses the ambassador's or the default",
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        comment="Creator of the offer",
    )

    # Workflow
    workflow_status: Mapped[OfferWorkflowStatus] = mapped_column(
        _enum_column(OfferWorkflowStatus),
        default=OfferWorkflowStatus.DRAFT,
        nullable=False,
        index=True,
    )
    previous_status: Mapped[Optional[OfferWorkflowStatus]] = mapped_column(
        _enum_column(OfferWorkflowStatus),
        nullable=True,
        comment="Status to resume after an information request",
    )
    converted_to_contract: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )

    remarks: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    equipment: Mapped[List["OfferEquipment"]] = relationship(
        "OfferEquipment",
        back_populates="offer",
        cascade="all, delete-orphan",
        order_by="OfferEquipment.position",
        lazy="selectin",
    )
    workflow_logs: Mapped[List["OfferWorkflowLog"]] = relationship(
        "OfferWorkflowLog",
        back_populates="offer",
        order_by="OfferWorkflowLog.id",
        passive_deletes=True,
    )
    leaser: Mapped[Optional["Leaser"]] = relationship(
        "Leaser",
        lazy="selectin",
    )
    ambassador: Mapped[Optional["Ambassador"]] = relationship(
        "Ambassador",
        lazy="selectin",
    )

    @property
    def equipment_description(self) -> str:
        """Human-readable list of equipment, used for contracts."""
        return ", ".join(
            f"{item.quantity} x {item.title}" if item.quantity > 1 else item.title
            for item in self.equipment
        )

    def __repr__(self) -> str:
        return (
            f"<Offer(id={self.id}, client='{self.client_name}', "
            f"status={self.workflow_status})>"
        )


class OfferEquipment(Base):
    """
    Equipment line item of an offer.

    `monthly_payment` is informative only; it is recomputed from
    purchase price, margin, quantity and the active coefficient.
    """

    __tablename__ = "offer_equipment"

    id: Mapped[int] = mapped_column(primary_key=True)
    offer_id: Mapped[int] = mapped_column(
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    purchase_price: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    margin: Mapped[Decimal] = mapped_column(
        Rate,
        default=Decimal("0"),
        nullable=False,
        comment="Margin in percent of the purchase price",
    )
    monthly_payment: Mapped[Optional[Decimal]] = mapped_column(
        Money,
        nullable=True,
    )

    offer: Mapped["Offer"] = relationship(
        "Offer",
        back_populates="equipment",
    )

    def __repr__(self) -> str:
        return f"<OfferEquipment(id={self.id}, title='{self.title}', qty={self.quantity})>"
