from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.models.enums import BillingMethod, ExpenseStatus, PaymentTerms


class CaseBilling(Base):
    """Billing configuration of a matter (one per matter)."""

    __tablename__ = "case_billing"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    matter_id: Mapped[int] = mapped_column(ForeignKey("matters.id", ondelete="CASCADE"), unique=True, index=True)

    billing_method: Mapped[BillingMethod] = mapped_column(Enum(BillingMethod))
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    fixed_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    percentage_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)  # 0-100
    minimum_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    payment_terms: Mapped[PaymentTerms] = mapped_column(Enum(PaymentTerms), default=PaymentTerms.DAYS_30)
    allows_payment_plan: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    matter = relationship("Matter", back_populates="billing")


class CaseOutcome(Base):
    __tablename__ = "case_outcomes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    matter_id: Mapped[int] = mapped_column(ForeignKey("matters.id", ondelete="CASCADE"), unique=True, index=True)

    outcome_type: Mapped[str] = mapped_column(String(40), default="settlement")  # settlement | judgment | ...
    amount_recovered: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    success_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)  # flat, on top of percentage
    outcome_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class CaseExpense(Base):
    __tablename__ = "case_expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    matter_id: Mapped[int] = mapped_column(ForeignKey("matters.id", ondelete="CASCADE"), index=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    expense_date: Mapped[dt.date] = mapped_column(Date, index=True)
    is_reimbursable: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[ExpenseStatus] = mapped_column(Enum(ExpenseStatus), default=ExpenseStatus.PENDING, index=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
