from __future__ import annotations

import calendar
import datetime as dt
import math
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.enums import InvoiceStatus, PaymentFrequency, PaymentPlanStatus
from app.models.invoice import PaymentPlanInvoice
from app.models.payment_plan import PaymentPlan
from app.services.errors import DuplicateInvoiceError, InvalidRequestError
from app.services.money import ZERO, q_brl

LATE_FEE_PERIOD_DAYS = 30
LATE_FEE_CAP_RATIO = Decimal("0.5")

_FIXED_DAY_STEPS = {
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.BIWEEKLY: 14,
}
_MONTH_STEPS = {
    PaymentFrequency.MONTHLY: 1,
    PaymentFrequency.QUARTERLY: 3,
}


@dataclass
class InstallmentSchedule:
    installment_number: int
    total_installments: int
    installment_amount: Decimal
    due_date: dt.date
    grace_period_days: int
    late_fee_rate: Decimal
    is_overdue: bool
    days_overdue: int
    late_fee_amount: Decimal
    is_final: bool
    existing: PaymentPlanInvoice | None = None


def add_months(d: dt.date, months: int) -> dt.date:
    """Same day N months later, clamped to the last day of a shorter month (Jan 31 + 1 -> Feb 28/29)."""
    y = d.year + (d.month - 1 + months) // 12
    m = (d.month - 1 + months) % 12 + 1
    return dt.date(y, m, min(d.day, calendar.monthrange(y, m)[1]))


def installment_due_date(plan: PaymentPlan, installment_number: int) -> dt.date:
    steps = installment_number - 1
    if plan.frequency in _FIXED_DAY_STEPS:
        return plan.start_date + dt.timedelta(days=_FIXED_DAY_STEPS[plan.frequency] * steps)
    return add_months(plan.start_date, _MONTH_STEPS.get(plan.frequency, 1) * steps)


def next_installment_number(db: Session, payment_plan_id: int) -> int:
    highest = (
        db.query(func.max(PaymentPlanInvoice.installment_number))
        .filter(PaymentPlanInvoice.payment_plan_id == payment_plan_id)
        .scalar()
    )
    return int(highest or 0) + 1


def days_overdue(due_date: dt.date, grace_period_days: int, today: dt.date) -> int:
    """Days past the end of the grace window; 0 while still inside it."""
    return max(0, (today - (due_date + dt.timedelta(days=grace_period_days))).days)


def compute_late_fee(
    *,
    installment_amount: Decimal,
    late_fee_rate: Decimal | None,
    due_date: dt.date,
    grace_period_days: int,
    today: dt.date,
    is_paid: bool = False,
) -> Decimal:
    """
    amount * rate% per started 30-day period past grace, capped at half the installment.
    """
    if is_paid or not late_fee_rate:
        return ZERO
    late_days = days_overdue(due_date, grace_period_days, today)
    if late_days <= 0:
        return ZERO
    periods = math.ceil(late_days / LATE_FEE_PERIOD_DAYS)
    amount = Decimal(str(installment_amount))
    fee = amount * Decimal(str(late_fee_rate)) / Decimal(100) * periods
    return q_brl(min(fee, amount * LATE_FEE_CAP_RATIO))


def plan_installment(
    db: Session,
    plan: PaymentPlan,
    *,
    installment_number: int | None = None,
    scheduled_date: dt.date | None = None,
    force: bool = False,
    today: dt.date | None = None,
) -> InstallmentSchedule:
    today = today or dt.date.today()
    n = installment_number or next_installment_number(db, plan.id)
    if n < 1 or n > plan.installments:
        raise InvalidRequestError("Número de parcela excede o total do plano")

    existing = (
        db.query(PaymentPlanInvoice)
        .filter(PaymentPlanInvoice.payment_plan_id == plan.id, PaymentPlanInvoice.installment_number == n)
        .first()
    )
    if existing is not None and not force:
        raise DuplicateInvoiceError("Fatura para esta parcela já existe")

    due = scheduled_date or installment_due_date(plan, n)
    grace = plan.grace_period_days if plan.grace_period_days is not None else 5
    is_paid = existing is not None and existing.invoice.invoice_status == InvoiceStatus.PAID
    late_days = days_overdue(due, grace, today)

    return InstallmentSchedule(
        installment_number=n,
        total_installments=plan.installments,
        installment_amount=q_brl(plan.installment_amount),
        due_date=due,
        grace_period_days=grace,
        late_fee_rate=Decimal(str(plan.late_fee_rate or 0)),
        is_overdue=late_days > 0,
        days_overdue=late_days,
        late_fee_amount=compute_late_fee(
            installment_amount=plan.installment_amount,
            late_fee_rate=plan.late_fee_rate,
            due_date=due,
            grace_period_days=grace,
            today=today,
            is_paid=is_paid,
        ),
        is_final=n == plan.installments,
        existing=existing,
    )


def advance_plan(plan: PaymentPlan, *, highest_generated: int) -> None:
    """Completes the plan once its last installment is invoiced, otherwise moves next_payment_date forward."""
    if highest_generated >= plan.installments:
        plan.status = PaymentPlanStatus.COMPLETED
        plan.next_payment_date = None
        return
    plan.next_payment_date = installment_due_date(plan, highest_generated + 1)
