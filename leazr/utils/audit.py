"""
Audit logging for configuration changes.

Leaser ranges and commission tiers are edited in place; the audit log is
their only history.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leazr.models.audit import AuditAction, AuditLog


async def log_action(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Record an auditable action.

    Args:
        db: Database session
        user_id: ID of the user performing the action
        action: Type of action being performed
        target_type: Type of entity affected (e.g., "leaser", "offer")
        target_id: ID of the affected entity
        action_metadata: Additional context, must be JSON-serialisable
        ip_address: Client IP address

    Returns:
        Created AuditLog entry
    """
    log_entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=action_metadata,
        ip_address=ip_address,
    )
    db.add(log_entry)
    # Committed by the calling request
    return log_entry


def get_client_ip(request) -> Optional[str]:
    """Client IP, honouring X-Forwarded-For behind a reverse proxy."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if getattr(request, "client", None):
        return request.client.host

    return None
