"""Typed before/after views of the fields each mutation audits.

Snapshots are built from ORM rows and hold plain primitives only: money as
float, dates as ISO strings. ``compute_changes`` can then compare them
structurally. Each class lists exactly the fields its call site tracks, so
``Snapshot.tracked_fields()`` is the allow-list passed to the diff.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict

from mba_tracker.core.changes import normalize_value


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    @classmethod
    def tracked_fields(cls) -> tuple[str, ...]:
        return tuple(cls.model_fields)

    @classmethod
    def from_model(cls, obj):
        return cls(**{name: normalize_value(getattr(obj, name)) for name in cls.model_fields})


class ClientSnapshot(Snapshot):
    name: str


class MBAStatusSnapshot(Snapshot):
    status: str


class MBAPaymentSnapshot(Snapshot):
    client_paid: bool
    client_paid_date: Optional[str] = None
    client_paid_amount: Optional[float] = None


class SpendEntrySnapshot(Snapshot):
    amount: float
    notes: Optional[str] = None


class InvoicePaymentSnapshot(Snapshot):
    is_paid: bool
    paid_date: Optional[str] = None
