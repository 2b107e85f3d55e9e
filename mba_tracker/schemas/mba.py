from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mba_tracker.models.enums import MBAStatus


class MBACreate(BaseModel):
    client_id: str
    name: str
    budget: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = None
    start_date: date
    end_date: date
    status: MBAStatus = MBAStatus.DRAFT

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("MBA name is required")
        return value

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else None

    @model_validator(mode="after")
    def _check_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ClientPaymentUpdate(BaseModel):
    client_paid: bool
    client_paid_date: Optional[date] = None
    client_paid_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)


class MBAOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    mba_number: str
    name: str
    budget: Decimal
    currency: str
    start_date: date
    end_date: date
    status: MBAStatus
    client_paid: bool
    client_paid_date: Optional[date] = None
    client_paid_amount: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime
