from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base
from app.models.enums import TimeEntryStatus, TimeEntryType


class TimeEntry(Base):
    """Work record. Read-only input for usage and case charge calculations."""

    __tablename__ = "time_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)

    entry_type: Mapped[TimeEntryType] = mapped_column(Enum(TimeEntryType), index=True)
    entry_status: Mapped[TimeEntryStatus] = mapped_column(Enum(TimeEntryStatus), default=TimeEntryStatus.DRAFT, index=True)
    entry_date: Mapped[dt.date] = mapped_column(Date, index=True)

    matter_id: Mapped[int | None] = mapped_column(ForeignKey("matters.id", ondelete="SET NULL"), nullable=True, index=True)
    client_subscription_id: Mapped[int | None] = mapped_column(
        ForeignKey("client_subscriptions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    task_category: Mapped[str | None] = mapped_column(String(60), nullable=True)  # Consultation | Document Review | ...
    subscription_service_type: Mapped[str | None] = mapped_column(String(60), nullable=True)
    activity_description: Mapped[str] = mapped_column(Text, default="")

    effective_minutes: Mapped[int] = mapped_column(Integer, default=0)
    is_billable: Mapped[bool] = mapped_column(Boolean, default=True)
    billable_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
