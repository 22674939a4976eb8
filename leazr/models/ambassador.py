"""
Ambassador model - a referring principal paid by commission level.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leazr.models.base import BaseModel

if TYPE_CHECKING:
    from leazr.models.commission import CommissionLevel


class AmbassadorStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Ambassador(BaseModel):
    """Referrer bringing clients; commissions follow their commission level."""

    __tablename__ = "ambassadors"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    status: Mapped[AmbassadorStatus] = mapped_column(
        SQLAlchemyEnum(
            AmbassadorStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=AmbassadorStatus.ACTIVE,
        nullable=False,
    )
    commission_level_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("commission_levels.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        comment="Login account of the ambassador, if any",
    )

    commission_level: Mapped[Optional["CommissionLevel"]] = relationship(
        "CommissionLevel",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Ambassador(id={self.id}, name='{self.name}')>"
