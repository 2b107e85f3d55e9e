import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mba_tracker.db.base import Base


class SpendEntry(Base):
    __tablename__ = "spend_entries"

    __table_args__ = (
        UniqueConstraint("mba_id", "platform", "period", name="uq_spend_entries_mba_platform_period"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    mba_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("mbas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform: Mapped[str] = mapped_column(String(16), nullable=False)
    period: Mapped[date] = mapped_column(Date, nullable=False)  # first day of the month
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    mba: Mapped["MBA"] = relationship("MBA", back_populates="spend_entries")
