"""
Leaser and LeaserRange models.

A leaser is a financing partner. Its ranges convert a financed amount into
a coefficient (monthly payment per 100 financed).
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leazr.models.base import Base, BaseModel, Money, Rate


class Leaser(BaseModel):
    """
    Financing partner with an ordered list of coefficient ranges.

    Edits mutate the row in place; there is no versioning.
    """

    __tablename__ = "leasers"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    logo_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    ranges: Mapped[List["LeaserRange"]] = relationship(
        "LeaserRange",
        back_populates="leaser",
        cascade="all, delete-orphan",
        order_by="LeaserRange.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Leaser(id={self.id}, name='{self.name}')>"


class LeaserRange(Base):
    """A single `[min_amount, max_amount] -> coefficient` row of a leaser."""

    __tablename__ = "leaser_ranges"

    id: Mapped[int] = mapped_column(primary_key=True)
    leaser_id: Mapped[int] = mapped_column(
        ForeignKey("leasers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Configured order, used as tie-break on lookup",
    )
    min_amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    max_amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    coefficient: Mapped[Decimal] = mapped_column(
        Rate,
        nullable=False,
    )

    leaser: Mapped["Leaser"] = relationship(
        "Leaser",
        back_populates="ranges",
    )

    def __repr__(self) -> str:
        return (
            f"<LeaserRange(id={self.id}, min={self.min_amount}, "
            f"max={self.max_amount}, coefficient={self.coefficient})>"
        )
