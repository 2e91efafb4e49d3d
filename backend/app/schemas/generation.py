from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, model_validator

from app.core.config import settings


class SubscriptionInvoiceCreate(BaseModel):
    client_subscription_id: int
    billing_period_start: dt.date
    billing_period_end: dt.date
    issue_date: dt.date | None = None
    force_regenerate: bool = False
    auto_send: bool = False
    notes: str | None = None

    @model_validator(mode="after")
    def _period_ordered(self):
        if self.billing_period_end < self.billing_period_start:
            raise ValueError("billing_period_end must not be before billing_period_start")
        return self


class SubscriptionInvoiceRequest(SubscriptionInvoiceCreate):
    law_firm_id: int


class BatchSubscriptionInvoiceRequest(BaseModel):
    billing_period_start: dt.date
    billing_period_end: dt.date
    client_subscription_ids: list[int] | None = None  # None: every active subscription
    force_regenerate: bool = False
    auto_send: bool = False


class CaseInvoiceCreate(BaseModel):
    matter_id: int
    billing_period_start: dt.date | None = None
    billing_period_end: dt.date | None = None
    include_time_entries: bool = False
    time_entry_ids: list[int] | None = None
    include_expenses: bool = True
    expense_ids: list[int] | None = None
    is_final_invoice: bool = True
    issue_date: dt.date | None = None
    auto_send: bool = False
    notes: str | None = None


class CaseInvoiceRequest(CaseInvoiceCreate):
    law_firm_id: int


class BatchCaseInvoiceRequest(BaseModel):
    matter_ids: list[int] = Field(min_length=1)
    billing_period_start: dt.date | None = None
    billing_period_end: dt.date | None = None
    include_time_entries: bool = False
    include_expenses: bool = True
    auto_send: bool = False


class PaymentPlanInvoiceCreate(BaseModel):
    installment_number: int | None = Field(default=None, ge=1)  # None: next unfilled installment
    scheduled_date: dt.date | None = None
    issue_date: dt.date | None = None
    force_regenerate: bool = False
    auto_send: bool = False
    notes: str | None = None


class PaymentPlanInvoiceRequest(PaymentPlanInvoiceCreate):
    law_firm_id: int
    payment_plan_id: int


class RemainingInstallmentsRequest(BaseModel):
    start_from_installment: int | None = Field(default=None, ge=1)
    auto_send: bool = False


class OverdueInstallmentsRequest(BaseModel):
    law_firm_id: int | None = None  # None: every firm
    grace_period_days: int = Field(default_factory=lambda: settings.default_grace_period_days, ge=0)
