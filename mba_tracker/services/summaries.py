"""Budget arithmetic over already-loaded rows.

Everything here is a linear sum over a handful of rows. Money stays in
``Decimal``. "Invoiced" always means vendor invoices net of credit notes.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from mba_tracker.models.client import Client
from mba_tracker.models.enums import InvoiceType, MBAStatus
from mba_tracker.models.invoice import InvoiceAllocation
from mba_tracker.models.mba import MBA

ZERO = Decimal("0")
# an invoice counts as fully allocated within one cent
ALLOCATION_TOLERANCE = Decimal("0.01")


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class MBASummary:
    budget: Decimal
    invoice_total: Decimal
    credit_total: Decimal
    total_invoiced: Decimal
    total_spend: Decimal
    remaining: Decimal
    percent_used: Decimal
    variance: Decimal
    spend_by_platform: dict[str, Decimal] = field(default_factory=dict)
    client_paid_variance: Optional[Decimal] = None


@dataclass(frozen=True)
class InvoiceSummary:
    total_amount: Decimal
    allocated_total: Decimal
    unallocated: Decimal
    fully_allocated: bool


@dataclass(frozen=True)
class PortfolioTotals:
    budget: Decimal = ZERO
    spend: Decimal = ZERO
    invoiced: Decimal = ZERO
    remaining: Decimal = ZERO


@dataclass(frozen=True)
class DashboardStats:
    mba_count: int
    active_count: int
    client_count: int
    total_budget: Decimal
    total_invoiced: Decimal
    total_spend: Decimal
    variance: Decimal
    remaining: Decimal
    client_paid_count: int
    total_client_paid: Decimal
    total_outstanding: Decimal


def _allocated_by_type(allocations: Iterable, invoice_type: InvoiceType) -> Decimal:
    return sum(
        (_money(alloc.amount) for alloc in allocations if alloc.invoice.type == invoice_type.value),
        ZERO,
    )


def summarize_mba(mba) -> MBASummary:
    """Budget vs. invoiced vs. spend for one MBA.

    ``mba`` needs ``budget``, ``client_paid_amount``, ``spend_entries`` and
    ``invoice_allocations`` (each with its ``invoice`` loaded).
    """
    budget = _money(mba.budget)
    invoice_total = _allocated_by_type(mba.invoice_allocations, InvoiceType.INVOICE)
    credit_total = _allocated_by_type(mba.invoice_allocations, InvoiceType.CREDIT_NOTE)
    total_invoiced = invoice_total - credit_total

    spend_by_platform: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in mba.spend_entries:
        spend_by_platform[entry.platform] += _money(entry.amount)
    total_spend = sum(spend_by_platform.values(), ZERO)

    percent_used = total_invoiced / budget * 100 if budget > 0 else ZERO

    client_paid_variance = None
    if mba.client_paid_amount is not None:
        client_paid_variance = _money(mba.client_paid_amount) - budget

    return MBASummary(
        budget=budget,
        invoice_total=invoice_total,
        credit_total=credit_total,
        total_invoiced=total_invoiced,
        total_spend=total_spend,
        remaining=budget - total_invoiced,
        percent_used=percent_used,
        variance=total_spend - total_invoiced,
        spend_by_platform=dict(spend_by_platform),
        client_paid_variance=client_paid_variance,
    )


def summarize_invoice(invoice) -> InvoiceSummary:
    total = _money(invoice.total_amount)
    allocated = sum((_money(alloc.amount) for alloc in invoice.allocations), ZERO)
    unallocated = total - allocated
    return InvoiceSummary(
        total_amount=total,
        allocated_total=allocated,
        unallocated=unallocated,
        fully_allocated=abs(unallocated) < ALLOCATION_TOLERANCE,
    )


def summarize_portfolio(mbas: Iterable) -> PortfolioTotals:
    budget = spend = invoiced = remaining = ZERO
    for mba in mbas:
        summary = summarize_mba(mba)
        budget += summary.budget
        spend += summary.total_spend
        invoiced += summary.total_invoiced
        remaining += summary.remaining
    return PortfolioTotals(budget=budget, spend=spend, invoiced=invoiced, remaining=remaining)


def dashboard_stats(db: Session) -> DashboardStats:
    mba_count = db.query(MBA).count()
    client_count = db.query(Client).count()
    active = (
        db.query(MBA)
        .options(
            selectinload(MBA.spend_entries),
            selectinload(MBA.invoice_allocations).selectinload(InvoiceAllocation.invoice),
        )
        .filter(MBA.status == MBAStatus.ACTIVE.value)
        .all()
    )

    totals = summarize_portfolio(active)
    paid = [mba for mba in active if mba.client_paid]
    # a paid MBA without a recorded amount is assumed paid in full
    total_client_paid = sum(
        (_money(mba.client_paid_amount if mba.client_paid_amount is not None else mba.budget) for mba in paid),
        ZERO,
    )
    total_outstanding = sum((_money(mba.budget) for mba in active if not mba.client_paid), ZERO)

    return DashboardStats(
        mba_count=mba_count,
        active_count=len(active),
        client_count=client_count,
        total_budget=totals.budget,
        total_invoiced=totals.invoiced,
        total_spend=totals.spend,
        variance=totals.spend - totals.invoiced,
        remaining=totals.remaining,
        client_paid_count=len(paid),
        total_client_paid=total_client_paid,
        total_outstanding=total_outstanding,
    )
