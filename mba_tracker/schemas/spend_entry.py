import re
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mba_tracker.models.enums import Platform

_MONTH = re.compile(r"^(\d{4})-(\d{2})(?:-\d{2})?$")


def first_of_month(value) -> date:
    """Accept a date or a ``YYYY-MM`` / ``YYYY-MM-DD`` string."""
    if isinstance(value, date):
        return value.replace(day=1)
    match = _MONTH.match(str(value).strip())
    if not match:
        raise ValueError("period must look like YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError("period month must be between 01 and 12")
    return date(year, month, 1)


class SpendEntryIn(BaseModel):
    mba_id: str
    platform: Platform
    period: date
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None

    @field_validator("period", mode="before")
    @classmethod
    def _period_to_month(cls, value):
        return first_of_month(value)

    @field_validator("notes")
    @classmethod
    def _blank_notes(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class SpendEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    mba_id: str
    platform: Platform
    period: date
    amount: Decimal
    notes: Optional[str] = None
