from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mba_tracker.core.audit import AuditAction, EntityType
from mba_tracker.core.changes import compute_changes
from mba_tracker.core.errors import ConflictError, NotFoundError
from mba_tracker.models.mba import MBA
from mba_tracker.models.spend_entry import SpendEntry
from mba_tracker.schemas.snapshots import SpendEntrySnapshot
from mba_tracker.schemas.spend_entry import SpendEntryIn
from mba_tracker.services.utils import Actor, audit_mutation


def record_spend(db: Session, payload: SpendEntryIn, actor: Optional[Actor] = None) -> SpendEntry:
    """
    Upsert the spend for one (mba, platform, month).
    A second entry for the same month replaces amount and notes.
    """
    if not db.get(MBA, payload.mba_id):
        raise NotFoundError("MBA", payload.mba_id)

    existing = (
        db.query(SpendEntry)
        .filter(SpendEntry.mba_id == payload.mba_id)
        .filter(SpendEntry.platform == payload.platform.value)
        .filter(SpendEntry.period == payload.period)
        .first()
    )

    if existing:
        before = SpendEntrySnapshot.from_model(existing)
        existing.amount = payload.amount
        existing.notes = payload.notes
        entry = existing
    else:
        before = None
        entry = SpendEntry(
            mba_id=payload.mba_id,
            platform=payload.platform.value,
            period=payload.period,
            amount=payload.amount,
            notes=payload.notes,
        )
        db.add(entry)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Spend for this platform and month was recorded concurrently")
    db.refresh(entry)

    if before is None:
        audit_mutation(EntityType.SPEND_ENTRY, entry.id, AuditAction.CREATE, actor=actor)
    else:
        changes = compute_changes(before, SpendEntrySnapshot.from_model(entry), SpendEntrySnapshot.tracked_fields())
        audit_mutation(EntityType.SPEND_ENTRY, entry.id, AuditAction.UPDATE, changes=changes, actor=actor)
    return entry
