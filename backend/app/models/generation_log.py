"""Audit trail of invoice generation runs."""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import JSON, Date, DateTime, Enum, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base
from app.models.enums import GenerationLogStatus, GenerationType


class InvoiceGenerationLog(Base):
    __tablename__ = "invoice_generation_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)

    generation_type: Mapped[GenerationType] = mapped_column(Enum(GenerationType), index=True)
    invoice_type: Mapped[str] = mapped_column(String(32), index=True)  # subscription | case_billing | payment_plan
    batch_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)

    total_invoices_generated: Mapped[int] = mapped_column(Integer, default=0)  # requested
    successful_generations: Mapped[int] = mapped_column(Integer, default=0)
    failed_generations: Mapped[int] = mapped_column(Integer, default=0)

    period_start: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    generated_invoice_ids: Mapped[list] = mapped_column(JSON, default=list)
    error_messages: Mapped[list] = mapped_column(JSON, default=list)

    status: Mapped[GenerationLogStatus] = mapped_column(Enum(GenerationLogStatus), default=GenerationLogStatus.COMPLETED)
    started_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
