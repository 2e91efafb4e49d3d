from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.models.enums import (
    BillingCycle,
    BillingMethod,
    InvoiceStatus,
    InvoiceType,
    LineItemType,
    PaymentTerms,
)


class Invoice(Base):
    """
    Invoice header.

    Invariant: total_amount = subtotal - discount_amount + tax_amount, and exactly one
    detail row matching invoice_type exists (subscription / case_billing / payment_plan).
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), index=True)

    invoice_number: Mapped[str | None] = mapped_column(String(40), unique=True, nullable=True)
    invoice_type: Mapped[InvoiceType] = mapped_column(Enum(InvoiceType), index=True)
    invoice_status: Mapped[InvoiceStatus] = mapped_column(Enum(InvoiceStatus), default=InvoiceStatus.DRAFT, index=True)

    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    currency: Mapped[str] = mapped_column(String(3), default="BRL")

    issue_date: Mapped[dt.date] = mapped_column(Date, index=True)
    due_date: Mapped[dt.date] = mapped_column(Date, index=True)
    sent_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    paid_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    payment_terms: Mapped[PaymentTerms] = mapped_column(Enum(PaymentTerms), default=PaymentTerms.DAYS_30)
    payment_methods: Mapped[list] = mapped_column(JSON, default=list)

    # Source references; one of them is "the" source for the invoice type.
    client_subscription_id: Mapped[int | None] = mapped_column(
        ForeignKey("client_subscriptions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    matter_id: Mapped[int | None] = mapped_column(ForeignKey("matters.id", ondelete="SET NULL"), nullable=True, index=True)
    payment_plan_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    applied_discounts: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    line_items = relationship(
        "InvoiceLineItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceLineItem.sort_order"
    )
    subscription_details = relationship(
        "SubscriptionInvoice", back_populates="invoice", uselist=False, cascade="all, delete-orphan"
    )
    case_details = relationship("CaseInvoice", back_populates="invoice", uselist=False, cascade="all, delete-orphan")
    payment_plan_details = relationship(
        "PaymentPlanInvoice", back_populates="invoice", uselist=False, cascade="all, delete-orphan"
    )
    client = relationship("Client")


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), index=True)

    line_type: Mapped[LineItemType] = mapped_column(Enum(LineItemType))
    description: Mapped[str] = mapped_column(Text)

    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    line_total: Mapped[Decimal] = mapped_column(Numeric(14, 2))  # signed for discount / adjustment

    time_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("time_entries.id", ondelete="SET NULL"), nullable=True, index=True
    )

    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_taxable: Mapped[bool] = mapped_column(Boolean, default=False)

    invoice = relationship("Invoice", back_populates="line_items")


class SubscriptionInvoice(Base):
    __tablename__ = "subscription_invoices"
    __table_args__ = (
        UniqueConstraint(
            "client_subscription_id", "billing_period_start", "billing_period_end", name="uq_subscription_invoice_period"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), unique=True)
    client_subscription_id: Mapped[int] = mapped_column(ForeignKey("client_subscriptions.id", ondelete="CASCADE"), index=True)

    billing_period_start: Mapped[dt.date] = mapped_column(Date)
    billing_period_end: Mapped[dt.date] = mapped_column(Date)
    billing_cycle: Mapped[BillingCycle] = mapped_column(Enum(BillingCycle))

    # {service_type: {included, used, overage, unit}}
    services_included: Mapped[dict] = mapped_column(JSON, default=dict)
    services_used: Mapped[dict] = mapped_column(JSON, default=dict)
    overage_charges: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    is_prorated: Mapped[bool] = mapped_column(Boolean, default=False)
    proration_factor: Mapped[Decimal] = mapped_column(Numeric(8, 6), default=1)
    proration_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)

    auto_renew: Mapped[bool] = mapped_column(Boolean, default=True)
    next_billing_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    invoice = relationship("Invoice", back_populates="subscription_details")


class CaseInvoice(Base):
    __tablename__ = "case_invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), unique=True)
    matter_id: Mapped[int] = mapped_column(ForeignKey("matters.id", ondelete="CASCADE"), index=True)
    case_billing_id: Mapped[int | None] = mapped_column(ForeignKey("case_billing.id", ondelete="SET NULL"), nullable=True)

    billing_method: Mapped[BillingMethod] = mapped_column(Enum(BillingMethod))

    total_hours: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=0)
    billable_hours: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=0)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    time_charges: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    fixed_fee: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    recovery_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    percentage_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    percentage_fee: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    success_fee: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    case_expenses: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    reimbursable_expenses: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    minimum_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    minimum_fee_applied: Mapped[bool] = mapped_column(Boolean, default=False)

    is_final_invoice: Mapped[bool] = mapped_column(Boolean, default=True)
    allows_payment_plan: Mapped[bool] = mapped_column(Boolean, default=True)

    invoice = relationship("Invoice", back_populates="case_details")


class PaymentPlanInvoice(Base):
    __tablename__ = "payment_plan_invoices"
    __table_args__ = (UniqueConstraint("payment_plan_id", "installment_number", name="uq_payment_plan_installment"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), unique=True)
    payment_plan_id: Mapped[int] = mapped_column(ForeignKey("payment_plans.id", ondelete="CASCADE"), index=True)

    installment_number: Mapped[int] = mapped_column(Integer)
    total_installments: Mapped[int] = mapped_column(Integer)
    installment_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    scheduled_date: Mapped[dt.date] = mapped_column(Date)
    grace_period_days: Mapped[int] = mapped_column(Integer, default=5)
    late_fee_rate: Mapped[Decimal] = mapped_column(Numeric(6, 2), default=0)
    late_fee_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    is_final_installment: Mapped[bool] = mapped_column(Boolean, default=False)
    auto_generate_next: Mapped[bool] = mapped_column(Boolean, default=False)

    invoice = relationship("Invoice", back_populates="payment_plan_details")
    payment_plan = relationship("PaymentPlan", back_populates="installment_invoices")
