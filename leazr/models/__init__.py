"""
Database models for Leazr.

All models are exported here for convenient imports:
    from leazr.models import Leaser, Offer, OfferWorkflowStatus, etc.
"""

from leazr.models.ambassador import Ambassador, AmbassadorStatus
from leazr.models.audit import AuditAction, AuditLog
from leazr.models.base import Base, BaseModel, TimestampMixin
from leazr.models.commission import CommissionLevel, CommissionRate, PrincipalType
from leazr.models.contract import Contract, ContractStatus
from leazr.models.leaser import Leaser, LeaserRange
from leazr.models.offer import (
    CommissionStatus,
    Offer,
    OfferEquipment,
    OfferType,
    OfferWorkflowStatus,
)
from leazr.models.user import User, UserRole
from leazr.models.workflow import OfferWorkflowLog

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    # Leaser
    "Leaser",
    "LeaserRange",
    # Commission
    "CommissionLevel",
    "CommissionRate",
    "PrincipalType",
    # Ambassador
    "Ambassador",
    "AmbassadorStatus",
    # Offer
    "Offer",
    "OfferEquipment",
    "OfferType",
    "OfferWorkflowStatus",
    "CommissionStatus",
    "OfferWorkflowLog",
    # Contract
    "Contract",
    "ContractStatus",
    # Audit
    "AuditLog",
    "AuditAction",
]
