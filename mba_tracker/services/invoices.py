from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from mba_tracker.core.audit import AuditAction, EntityType
from mba_tracker.core.changes import compute_changes
from mba_tracker.core.config import settings
from mba_tracker.core.errors import ConflictError, InvalidInputError, NotFoundError
from mba_tracker.models.invoice import Invoice, InvoiceAllocation
from mba_tracker.models.mba import MBA
from mba_tracker.schemas.invoice import InvoiceCreate
from mba_tracker.schemas.snapshots import InvoicePaymentSnapshot
from mba_tracker.services.utils import Actor, audit_mutation

logger = logging.getLogger(__name__)


def get_invoice(db: Session, invoice_id: str) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.allocations).selectinload(InvoiceAllocation.mba))
        .filter(Invoice.id == invoice_id)
        .first()
    )
    if not invoice:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def list_invoices(db: Session, is_paid: Optional[bool] = None) -> list[Invoice]:
    query = db.query(Invoice).options(selectinload(Invoice.allocations))
    if is_paid is not None:
        query = query.filter(Invoice.is_paid == is_paid)
    return query.order_by(Invoice.invoice_date.desc()).all()


def create_invoice(db: Session, payload: InvoiceCreate, actor: Optional[Actor] = None) -> Invoice:
    """Create a vendor invoice (or credit note) and its MBA allocations in one commit."""
    allocated = sum((alloc.amount for alloc in payload.allocations), Decimal("0"))
    if allocated > payload.total_amount:
        raise InvalidInputError(
            f"Allocations ({allocated}) exceed invoice total ({payload.total_amount})"
        )

    mba_ids = {alloc.mba_id for alloc in payload.allocations}
    if mba_ids:
        found = {row[0] for row in db.query(MBA.id).filter(MBA.id.in_(mba_ids)).all()}
        missing = sorted(mba_ids - found)
        if missing:
            raise NotFoundError("MBA", missing[0])

    invoice = Invoice(
        type=payload.type.value,
        vendor=payload.vendor,
        invoice_number=payload.invoice_number,
        invoice_date=payload.invoice_date,
        total_amount=payload.total_amount,
        currency=payload.currency or settings.DEFAULT_CURRENCY,
        is_paid=payload.is_paid,
        notes=payload.notes,
    )
    invoice.allocations = [
        InvoiceAllocation(mba_id=alloc.mba_id, amount=alloc.amount) for alloc in payload.allocations
    ]
    db.add(invoice)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("An invoice with this number already exists for this vendor")
    db.refresh(invoice)
    logger.info(
        "invoice created id=%s vendor=%s number=%s allocations=%d",
        invoice.id,
        invoice.vendor,
        invoice.invoice_number,
        len(invoice.allocations),
    )

    audit_mutation(EntityType.INVOICE, invoice.id, AuditAction.CREATE, actor=actor)
    for allocation in invoice.allocations:
        audit_mutation(EntityType.INVOICE_ALLOCATION, allocation.id, AuditAction.CREATE, actor=actor)
    return invoice


def toggle_invoice_paid(db: Session, invoice_id: str, actor: Optional[Actor] = None) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice", invoice_id)
    before = InvoicePaymentSnapshot.from_model(invoice)

    invoice.is_paid = not invoice.is_paid
    invoice.paid_date = datetime.now(timezone.utc) if invoice.is_paid else None
    db.commit()
    db.refresh(invoice)

    changes = compute_changes(
        before, InvoicePaymentSnapshot.from_model(invoice), InvoicePaymentSnapshot.tracked_fields()
    )
    audit_mutation(EntityType.INVOICE, invoice.id, AuditAction.UPDATE, changes=changes, actor=actor)
    return invoice


def delete_invoice(db: Session, invoice_id: str, actor: Optional[Actor] = None) -> None:
    invoice = db.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice", invoice_id)
    allocation_ids = [allocation.id for allocation in invoice.allocations]
    db.delete(invoice)
    db.commit()
    logger.info("invoice deleted id=%s allocations=%d", invoice_id, len(allocation_ids))

    audit_mutation(EntityType.INVOICE, invoice_id, AuditAction.DELETE, actor=actor)
    for allocation_id in allocation_ids:
        audit_mutation(EntityType.INVOICE_ALLOCATION, allocation_id, AuditAction.DELETE, actor=actor)
