"""
OfferWorkflowLog model - append-only trail of offer status transitions.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leazr.models.base import Base

if TYPE_CHECKING:
    from leazr.models.offer import Offer
    from leazr.models.user import User


class OfferWorkflowLog(Base):
    """
    One status transition of an offer.

    Rows are never updated. They are written before the status itself
    changes, so this table is the record of what was attempted.
    """

    __tablename__ = "offer_workflow_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    offer_id: Mapped[int] = mapped_column(
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    # Plain strings: the log keeps whatever was recorded even if the
    # status set changes later.
    previous_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    new_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    offer: Mapped["Offer"] = relationship(
        "Offer",
        back_populates="workflow_logs",
    )
    user: Mapped["User"] = relationship(
        "User",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<OfferWorkflowLog(id={self.id}, offer_id={self.offer_id}, "
            f"{self.previous_status}->{self.new_status})>"
        )
