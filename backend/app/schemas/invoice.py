from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.enums import BillingCycle, BillingMethod, InvoiceStatus, InvoiceType, LineItemType, PaymentTerms
from app.schemas.common import ApiModel


class InvoiceLineItemOut(ApiModel):
    id: int
    line_type: LineItemType
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    time_entry_id: int | None = None
    sort_order: int


class SubscriptionInvoiceOut(ApiModel):
    client_subscription_id: int
    billing_period_start: dt.date
    billing_period_end: dt.date
    billing_cycle: BillingCycle
    services_included: dict
    services_used: dict
    overage_charges: Decimal
    is_prorated: bool
    proration_factor: Decimal
    proration_reason: str | None = None
    auto_renew: bool
    next_billing_date: dt.date | None = None


class CaseInvoiceOut(ApiModel):
    matter_id: int
    billing_method: BillingMethod
    total_hours: Decimal
    billable_hours: Decimal
    hourly_rate: Decimal | None = None
    time_charges: Decimal
    fixed_fee: Decimal
    recovery_amount: Decimal | None = None
    percentage_rate: Decimal | None = None
    percentage_fee: Decimal
    success_fee: Decimal
    case_expenses: Decimal
    reimbursable_expenses: Decimal
    minimum_fee: Decimal | None = None
    minimum_fee_applied: bool
    is_final_invoice: bool


class PaymentPlanInvoiceOut(ApiModel):
    payment_plan_id: int
    installment_number: int
    total_installments: int
    installment_amount: Decimal
    scheduled_date: dt.date
    grace_period_days: int
    late_fee_rate: Decimal
    late_fee_amount: Decimal
    is_final_installment: bool
    auto_generate_next: bool


class InvoiceOut(ApiModel):
    id: int
    law_firm_id: int
    client_id: int
    invoice_number: str | None = None
    invoice_type: InvoiceType
    invoice_status: InvoiceStatus
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    issue_date: dt.date
    due_date: dt.date
    sent_date: dt.date | None = None
    payment_terms: PaymentTerms
    payment_methods: list[str] = Field(default_factory=list)
    client_subscription_id: int | None = None
    matter_id: int | None = None
    payment_plan_id: int | None = None
    description: str | None = None
    notes: str | None = None
    applied_discounts: list[dict] = Field(default_factory=list)
    line_items: list[InvoiceLineItemOut] = Field(default_factory=list)
    subscription_details: SubscriptionInvoiceOut | None = None
    case_details: CaseInvoiceOut | None = None
    payment_plan_details: PaymentPlanInvoiceOut | None = None


class InvoiceGenerationResult(BaseModel):
    success: bool
    invoice: InvoiceOut | None = None
    error: str | None = None
    error_code: str | None = None
    warnings: list[str] = Field(default_factory=list)


class BatchError(BaseModel):
    client_id: int | None = None
    error: str


class BatchInvoiceGenerationResult(BaseModel):
    success: bool
    total_requested: int = 0
    successful_generations: int = 0
    failed_generations: int = 0
    invoices: list[InvoiceOut] = Field(default_factory=list)
    errors: list[BatchError] = Field(default_factory=list)
    batch_id: uuid.UUID | None = None


class PaymentPlanSummary(BaseModel):
    payment_plan_id: int
    total_installments: int
    generated_installments: int
    remaining_installments: int
    next_installment_number: int | None = None
    next_due_date: dt.date | None = None
    total_invoiced: Decimal
    total_late_fees: Decimal
    remaining_amount: Decimal
    status: str
