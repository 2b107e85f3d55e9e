"""Best-effort audit trail recording.

Audit rows are written after the business change they describe has already
been committed. A failing audit write is logged and swallowed: the caller's
operation has succeeded and must be reported as such.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, Union

from sqlalchemy.orm import Session

from mba_tracker.core.changes import Changes, compute_changes, normalize_value
from mba_tracker.core.config import settings
from mba_tracker.db.session import SessionLocal
from mba_tracker.models.audit_log import AuditLog

logger = logging.getLogger("mba_tracker.audit")

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditResult",
    "AuditStore",
    "EntityType",
    "SqlAlchemyAuditStore",
    "compute_changes",
    "get_audit_store",
    "log_audit",
]


class EntityType(str, enum.Enum):
    CLIENT = "Client"
    MBA = "MBA"
    INVOICE = "Invoice"
    SPEND_ENTRY = "SpendEntry"
    INVOICE_ALLOCATION = "InvoiceAllocation"


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class AuditEvent:
    entity_type: EntityType
    entity_id: str
    action: AuditAction
    changes: Optional[Changes] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None


@dataclass(frozen=True)
class AuditResult:
    ok: bool
    record_id: Optional[str] = None
    created_at: Optional[datetime] = None
    error: Optional[BaseException] = None
    skipped: bool = False


class AuditStore(Protocol):
    def create(self, event: AuditEvent) -> tuple[str, datetime]:
        ...


class SqlAlchemyAuditStore:
    """Writes each event in its own session so it never shares the caller's transaction."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def create(self, event: AuditEvent) -> tuple[str, datetime]:
        db = self._session_factory()
        try:
            record = AuditLog(
                entity_type=event.entity_type.value,
                entity_id=event.entity_id,
                action=event.action.value,
                changes=event.changes,
                user_id=event.user_id,
                user_email=event.user_email,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return record.id, record.created_at
        finally:
            db.close()


def _json_changes(changes: Optional[Changes]) -> Optional[Changes]:
    if not changes:
        return None
    return {
        str(name): {side: normalize_value(value) for side, value in diff.items()}
        for name, diff in changes.items()
    }


_default_store: Optional[AuditStore] = None


def get_audit_store() -> AuditStore:
    global _default_store
    if _default_store is None:
        _default_store = SqlAlchemyAuditStore()
    return _default_store


def log_audit(
    *,
    entity_type: Union[EntityType, str],
    entity_id: str,
    action: Union[AuditAction, str],
    changes: Optional[Changes] = None,
    user_id: Optional[str] = None,
    user_email: Optional[str] = None,
    store: Optional[AuditStore] = None,
    log: Optional[Any] = None,
) -> AuditResult:
    """Persist one audit record. Never raises.

    ``store`` and ``log`` default to the SQLAlchemy store and this module's
    logger. The returned ``AuditResult`` only exists for callers that care;
    ignoring it is the normal case.
    """
    log = log or logger
    if not settings.AUDIT_ENABLED:
        return AuditResult(ok=False, skipped=True)

    try:
        event = AuditEvent(
            entity_type=EntityType(entity_type),
            entity_id=str(entity_id),
            action=AuditAction(action),
            changes=_json_changes(changes),
            user_id=user_id,
            user_email=user_email,
        )
        record_id, created_at = (store or get_audit_store()).create(event)
    except Exception as exc:
        log.exception(
            "Failed to create audit log entity=%s entity_id=%s action=%s",
            entity_type,
            entity_id,
            action,
        )
        return AuditResult(ok=False, error=exc)

    log.debug(
        "audit_event action=%s entity=%s entity_id=%s user_id=%s",
        event.action.value,
        event.entity_type.value,
        event.entity_id,
        event.user_id,
    )
    return AuditResult(ok=True, record_id=record_id, created_at=created_at)
