from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from mba_tracker.core.audit import AuditAction, AuditResult, EntityType, log_audit
from mba_tracker.core.changes import Changes


@dataclass(frozen=True)
class Actor:
    user_id: Optional[str] = None
    user_email: Optional[str] = None


def audit_mutation(
    entity_type: EntityType,
    entity_id: str,
    action: AuditAction,
    changes: Optional[Changes] = None,
    actor: Optional[Actor] = None,
) -> AuditResult:
    return log_audit(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        changes=changes,
        user_id=actor.user_id if actor else None,
        user_email=actor.user_email if actor else None,
    )
