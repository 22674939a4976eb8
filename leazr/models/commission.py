"""
Commission levels and their tiered rates.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leazr.models.base import Base, BaseModel, Money, Rate


class PrincipalType(str, Enum):
    """Who receives the commission."""
    AMBASSADOR = "ambassador"
    PARTNER = "partner"


class CommissionLevel(BaseModel):
    """
    Named tier table used to pay a referring principal.

    Configured administratively, read-only while offers are calculated.
    """

    __tablename__ = "commission_levels"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    type: Mapped[PrincipalType] = mapped_column(
        SQLAlchemyEnum(
            PrincipalType,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PrincipalType.AMBASSADOR,
        nullable=False,
        index=True,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    rates: Mapped[List["CommissionRate"]] = relationship(
        "CommissionRate",
        back_populates="level",
        cascade="all, delete-orphan",
        order_by="CommissionRate.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<CommissionLevel(id={self.id}, name='{self.name}', type={self.type})>"


class CommissionRate(Base):
    """
    One tier of a commission level.

    A tier either pays `rate` percent of the financed amount or,
    when `fixed_amount` is set, that flat amount.
    """

    __tablename__ = "commission_rates"

    id: Mapped[int] = mapped_column(primary_key=True)
    commission_level_id: Mapped[int] = mapped_column(
        ForeignKey("commission_levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    min_amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    max_amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    rate: Mapped[Decimal] = mapped_column(
        Rate,
        default=Decimal("0"),
        nullable=False,
        comment="Percent of the financed amount",
    )
    fixed_amount: Mapped[Optional[Decimal]] = mapped_column(
        Money,
        nullable=True,
        comment="Flat commission, overrides rate when set",
    )

    level: Mapped["CommissionLevel"] = relationship(
        "CommissionLevel",
        back_populates="rates",
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionRate(id={self.id}, min={self.min_amount}, "
            f"max={self.max_amount}, rate={self.rate})>"
        )
