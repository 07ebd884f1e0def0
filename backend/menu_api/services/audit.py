"""
Audit logging service.
Records menu content and access-control changes in the caller's transaction.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy.orm import Session

from menu_api.models import AuditLog
from shared.config.constants import AuditAction

if TYPE_CHECKING:
    from menu_api.services.permissions.policy import Principal


def log_change(
    db: Session,
    *,
    tenant_id: int,
    actor: Optional["Principal"],
    entity_type: str,
    entity_id: int,
    action: str,
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
) -> AuditLog:
    """
    Log a change to an entity.

    Args:
        db: Database session
        tenant_id: Tenant ID
        actor: Principal who made the change (None for system changes)
        entity_type: Type of entity (e.g., "menu_line", "item")
        entity_id: ID of the entity
        action: One of AuditAction
        old_values: Previous state of the entity (for UPDATE/DELETE)
        new_values: New state of the entity (for CREATE/UPDATE)

    Returns:
        Added (not committed) AuditLog entry
    """
    changes = None
    if action != AuditAction.CREATE and old_values and new_values:
        changes = {}
        for key in set(old_values.keys()) | set(new_values.keys()):
            old_val = old_values.get(key)
            new_val = new_values.get(key)
            if old_val != new_val:
                changes[key] = {"old": old_val, "new": new_val}

    audit_entry = AuditLog(
        tenant_id=tenant_id,
        user_id=actor.id if actor else None,
        user_email=actor.email if actor else None,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        old_values=json.dumps(old_values, default=str) if old_values else None,
        new_values=json.dumps(new_values, default=str) if new_values else None,
        changes=json.dumps(changes, default=str) if changes else None,
    )

    db.add(audit_entry)
    # Don't commit here - the caller owns the transaction
    return audit_entry


def serialize_model(obj: Any, exclude: list[str] | None = None) -> dict:
    """
    Serialize a SQLAlchemy model's columns to a dictionary for audit logging.
    Audit bookkeeping columns are skipped.
    """
    skip = {"created_at", "updated_at", "created_by_id", "created_by_email",
            "updated_by_id", "updated_by_email"}
    if exclude:
        skip.update(exclude)

    result = {}
    for column in obj.__table__.columns:
        if column.name in skip:
            continue
        value = getattr(obj, column.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        result[column.name] = value

    return result
