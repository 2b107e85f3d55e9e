from mba_tracker.db.base import Base
from mba_tracker.models.audit_log import AuditLog
from mba_tracker.models.client import Client
from mba_tracker.models.enums import InvoiceType, MBAStatus, Platform
from mba_tracker.models.invoice import Invoice, InvoiceAllocation
from mba_tracker.models.mba import MBA
from mba_tracker.models.spend_entry import SpendEntry

__all__ = [
    "Base",
    "AuditLog",
    "Client",
    "MBA",
    "SpendEntry",
    "Invoice",
    "InvoiceAllocation",
    "InvoiceType",
    "MBAStatus",
    "Platform",
]
