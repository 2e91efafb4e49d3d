from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.models.enums import PaymentFrequency, PaymentPlanStatus


class PaymentPlan(Base):
    """
    Installment agreement for a client (usually tied to a matter).

    Installment invoices are generated one at a time, never all up front.
    """

    __tablename__ = "payment_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    matter_id: Mapped[int | None] = mapped_column(ForeignKey("matters.id", ondelete="SET NULL"), nullable=True, index=True)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    installments: Mapped[int] = mapped_column(Integer)
    installment_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    frequency: Mapped[PaymentFrequency] = mapped_column(Enum(PaymentFrequency), default=PaymentFrequency.MONTHLY)

    start_date: Mapped[dt.date] = mapped_column(Date)  # due date of installment 1
    next_payment_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)

    status: Mapped[PaymentPlanStatus] = mapped_column(Enum(PaymentPlanStatus), default=PaymentPlanStatus.ACTIVE, index=True)
    late_fee_rate: Mapped[Decimal] = mapped_column(Numeric(6, 2), default=0)  # percent per 30 days late
    grace_period_days: Mapped[int] = mapped_column(Integer, default=5)
    auto_generate_invoices: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    matter = relationship("Matter")
    installment_invoices = relationship(
        "PaymentPlanInvoice", back_populates="payment_plan", order_by="PaymentPlanInvoice.installment_number"
    )
