"""
AuditLog model for tracking configuration changes and logins.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leazr.models.base import Base

if TYPE_CHECKING:
    from leazr.models.user import User


class AuditAction(str, Enum):
    """Types of auditable actions."""
    LOGIN = "login"
    LOGOUT = "logout"
    CREATE_LEASER = "create_leaser"
    UPDATE_LEASER = "update_leaser"
    DELETE_LEASER = "delete_leaser"
    CREATE_COMMISSION_LEVEL = "create_commission_level"
    UPDATE_COMMISSION_LEVEL = "update_commission_level"
    DELETE_COMMISSION_LEVEL = "delete_commission_level"
    CREATE_AMBASSADOR = "create_ambassador"
    CREATE_OFFER = "create_offer"
    DELETE_OFFER = "delete_offer"
    UPDATE_COMMISSION_STATUS = "update_commission_status"


class AuditLog(Base):
    """
    Audit log for actions that have no history of their own.

    Leaser ranges and commission tiers are edited in place, so this
    table is the only trace of who changed them and when.
    Offer status changes are tracked in offer_workflow_logs instead.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (leaser, commission_level, offer, etc)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected entity",
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Additional context about the action",
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="audit_logs",
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, user_id={self.user_id}, action={self.action})>"
