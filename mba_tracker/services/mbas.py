from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from mba_tracker.core.audit import AuditAction, EntityType
from mba_tracker.core.changes import compute_changes
from mba_tracker.core.config import settings
from mba_tracker.core.errors import ConflictError, InvalidInputError, NotFoundError
from mba_tracker.models.client import Client
from mba_tracker.models.enums import MBAStatus
from mba_tracker.models.invoice import InvoiceAllocation
from mba_tracker.models.mba import MBA
from mba_tracker.schemas.mba import ClientPaymentUpdate, MBACreate
from mba_tracker.schemas.snapshots import MBAPaymentSnapshot, MBAStatusSnapshot
from mba_tracker.services.utils import Actor, audit_mutation

logger = logging.getLogger(__name__)


def get_mba(db: Session, mba_id: str) -> MBA:
    """Load an MBA with the rows its summary needs."""
    mba = (
        db.query(MBA)
        .options(
            selectinload(MBA.client),
            selectinload(MBA.spend_entries),
            selectinload(MBA.invoice_allocations).selectinload(InvoiceAllocation.invoice),
        )
        .filter(MBA.id == mba_id)
        .first()
    )
    if not mba:
        raise NotFoundError("MBA", mba_id)
    return mba


def list_mbas(
    db: Session,
    client_id: Optional[str] = None,
    status: Optional[Union[MBAStatus, str]] = None,
) -> list[MBA]:
    query = (
        db.query(MBA)
        .join(Client, MBA.client_id == Client.id)
        .options(
            selectinload(MBA.spend_entries),
            selectinload(MBA.invoice_allocations).selectinload(InvoiceAllocation.invoice),
        )
    )
    if client_id:
        query = query.filter(MBA.client_id == client_id)
    if status is not None:
        query = query.filter(MBA.status == MBAStatus(status).value)
    return query.order_by(Client.name.asc(), MBA.created_at.desc()).all()


def generate_mba_number(db: Session, year: Optional[int] = None) -> str:
    """Next number in the ``<prefix>-<year>-NNN`` sequence.

    Follows the highest sequence in use, so numbers freed by deleted MBAs are
    never handed out again.
    """
    year = year or date.today().year
    prefix = f"{settings.MBA_NUMBER_PREFIX}-{year}-"
    rows = db.query(MBA.mba_number).filter(MBA.mba_number.startswith(prefix)).all()
    highest = 0
    for (number,) in rows:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


def create_mba(db: Session, payload: MBACreate, actor: Optional[Actor] = None) -> MBA:
    if not db.get(Client, payload.client_id):
        raise NotFoundError("Client", payload.client_id)

    mba = MBA(
        client_id=payload.client_id,
        mba_number=generate_mba_number(db),
        name=payload.name,
        budget=payload.budget,
        currency=payload.currency or settings.DEFAULT_CURRENCY,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=payload.status.value,
    )
    db.add(mba)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"MBA number {mba.mba_number} already exists")
    db.refresh(mba)
    logger.info("mba created id=%s number=%s", mba.id, mba.mba_number)

    audit_mutation(EntityType.MBA, mba.id, AuditAction.CREATE, actor=actor)
    return mba


def update_mba_status(
    db: Session,
    mba_id: str,
    status: Union[MBAStatus, str],
    actor: Optional[Actor] = None,
) -> MBA:
    try:
        new_status = MBAStatus(status)
    except ValueError:
        raise InvalidInputError(f"Unknown MBA status: {status}")

    mba = db.get(MBA, mba_id)
    if not mba:
        raise NotFoundError("MBA", mba_id)
    before = MBAStatusSnapshot.from_model(mba)

    mba.status = new_status.value
    db.commit()
    db.refresh(mba)

    changes = compute_changes(before, MBAStatusSnapshot.from_model(mba), MBAStatusSnapshot.tracked_fields())
    if changes:
        audit_mutation(EntityType.MBA, mba.id, AuditAction.UPDATE, changes=changes, actor=actor)
    return mba


def update_client_payment(
    db: Session,
    mba_id: str,
    payload: ClientPaymentUpdate,
    actor: Optional[Actor] = None,
) -> MBA:
    """Record what the client has paid the agency for this MBA.

    Date and amount are overwritten as given, so omitting them clears them.
    """
    mba = db.get(MBA, mba_id)
    if not mba:
        raise NotFoundError("MBA", mba_id)
    before = MBAPaymentSnapshot.from_model(mba)

    mba.client_paid = payload.client_paid
    mba.client_paid_date = payload.client_paid_date
    mba.client_paid_amount = payload.client_paid_amount
    db.commit()
    db.refresh(mba)

    changes = compute_changes(before, MBAPaymentSnapshot.from_model(mba), MBAPaymentSnapshot.tracked_fields())
    if changes:
        audit_mutation(EntityType.MBA, mba.id, AuditAction.UPDATE, changes=changes, actor=actor)
    return mba
