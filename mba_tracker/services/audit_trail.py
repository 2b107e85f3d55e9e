from __future__ import annotations

from typing import Optional, Union

from sqlalchemy.orm import Session

from mba_tracker.core.audit import EntityType
from mba_tracker.models.audit_log import AuditLog
from mba_tracker.schemas.audit_log import AuditLogOut


def list_audit_logs(
    db: Session,
    entity_type: Optional[Union[EntityType, str]] = None,
    entity_id: Optional[str] = None,
    limit: int = 100,
) -> list[AuditLogOut]:
    """Most recent audit records first."""
    query = db.query(AuditLog)
    if entity_type is not None:
        query = query.filter(AuditLog.entity_type == EntityType(entity_type).value)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    rows = query.order_by(AuditLog.created_at.desc()).limit(limit).all()
    return [AuditLogOut.model_validate(row) for row in rows]
