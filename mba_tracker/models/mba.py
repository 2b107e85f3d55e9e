import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Numeric, String, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mba_tracker.db.base import Base
from mba_tracker.models.enums import MBAStatus


class MBA(Base):
    __tablename__ = "mbas"

    __table_args__ = (
        Index("ix_mbas_client_id", "client_id"),
        Index("ix_mbas_status", "status"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    mba_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    budget: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="USD")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default=MBAStatus.DRAFT.value
    )  # DRAFT/ACTIVE/CLOSED

    # what the client has paid the agency, as opposed to vendor invoices
    client_paid: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=false(), default=False
    )
    client_paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    client_paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    client: Mapped["Client"] = relationship("Client", back_populates="mbas")
    spend_entries: Mapped[List["SpendEntry"]] = relationship(
        "SpendEntry",
        back_populates="mba",
        cascade="all",
        order_by="SpendEntry.period.desc()",
    )
    invoice_allocations: Mapped[List["InvoiceAllocation"]] = relationship(
        "InvoiceAllocation",
        back_populates="mba",
        cascade="all",
    )
