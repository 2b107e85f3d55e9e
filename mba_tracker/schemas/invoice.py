from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mba_tracker.models.enums import InvoiceType


class AllocationIn(BaseModel):
    mba_id: str
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


class InvoiceCreate(BaseModel):
    type: InvoiceType = InvoiceType.INVOICE
    vendor: str
    invoice_number: str
    invoice_date: date
    total_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = None
    is_paid: bool = False
    notes: Optional[str] = None
    allocations: List[AllocationIn] = Field(default_factory=list)

    @field_validator("vendor", "invoice_number")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Missing required fields")
        return value

    @field_validator("notes")
    @classmethod
    def _blank_notes(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class AllocationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    mba_id: str
    amount: Decimal


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: InvoiceType
    vendor: str
    invoice_number: str
    invoice_date: date
    total_amount: Decimal
    currency: str
    is_paid: bool
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    allocations: List[AllocationOut] = []
