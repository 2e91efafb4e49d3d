from __future__ import annotations

import datetime as dt
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.case_billing import CaseBilling, CaseExpense, CaseOutcome
from app.models.enums import BillingMethod, ExpenseStatus, TimeEntryStatus
from app.models.firm import Matter
from app.models.time_entry import TimeEntry
from app.services.errors import InvalidRequestError
from app.services.money import ZERO, format_brl, minutes_to_hours, q_brl, q_hours

# Up to this many billable entries, each one becomes its own line item.
DETAILED_TIME_ENTRY_LIMIT = 10


@dataclass(frozen=True)
class HourlyCharge:
    description: str
    hours: Decimal
    rate: Decimal
    amount: Decimal
    time_entry_id: int | None = None


@dataclass
class CaseBillingData:
    time_entries: list[TimeEntry] = field(default_factory=list)
    expenses: list[CaseExpense] = field(default_factory=list)
    outcome: CaseOutcome | None = None


@dataclass
class CaseCharges:
    billing_method: BillingMethod
    total_hours: Decimal = Decimal("0")
    billable_hours: Decimal = Decimal("0")
    time_charges: Decimal = ZERO
    fixed_fee: Decimal = ZERO
    recovery_amount: Decimal | None = None
    percentage_fee: Decimal = ZERO
    success_fee: Decimal = ZERO
    case_expenses: Decimal = ZERO
    reimbursable_expenses: Decimal = ZERO
    computed_subtotal: Decimal = ZERO
    subtotal: Decimal = ZERO
    minimum_fee_applied: bool = False
    hourly_lines: list[HourlyCharge] = field(default_factory=list)

    @property
    def minimum_fee_adjustment(self) -> Decimal:
        return q_brl(self.subtotal - self.computed_subtotal) if self.minimum_fee_applied else ZERO


def _fmt_hours(hours: Decimal) -> str:
    return f"{hours:.1f}".replace(".", ",") + "h"


def _effective_rate(entry: TimeEntry, default_rate: Decimal | None) -> Decimal:
    rate = entry.billable_rate or default_rate
    if rate is None:
        raise InvalidRequestError("Valor da hora não configurado para o caso")
    return q_brl(rate)


def _settle_rounding(charges: list[HourlyCharge], minutes_by_rate: OrderedDict[Decimal, int]) -> list[HourlyCharge]:
    """Last charge absorbs the cents lost by rounding each line, so the lines add up to the rounded exact total."""
    exact = sum((Decimal(minutes) * rate for rate, minutes in minutes_by_rate.items()), Decimal(0)) / Decimal(60)
    remainder = q_brl(exact) - sum((c.amount for c in charges), ZERO)
    if remainder:
        charges[-1] = replace(charges[-1], amount=q_brl(charges[-1].amount + remainder))
    return charges


def hourly_charges(time_entries: list[TimeEntry], default_rate: Decimal | None) -> list[HourlyCharge]:
    """
    Billable entries priced at their own rate, or the case default when they have none.

    Few entries: one charge per entry. Otherwise one charge per distinct rate.
    """
    billable = [e for e in time_entries if e.is_billable]
    if not billable:
        return []

    minutes_by_rate: OrderedDict[Decimal, int] = OrderedDict()
    for e in billable:
        rate = _effective_rate(e, default_rate)
        minutes_by_rate[rate] = minutes_by_rate.get(rate, 0) + int(e.effective_minutes)

    out: list[HourlyCharge] = []
    if len(billable) <= DETAILED_TIME_ENTRY_LIMIT:
        for e in billable:
            rate = _effective_rate(e, default_rate)
            hours = minutes_to_hours(e.effective_minutes)
            out.append(
                HourlyCharge(
                    description=f"{e.activity_description or 'Horas trabalhadas'} ({_fmt_hours(hours)})",
                    hours=q_hours(hours),
                    rate=rate,
                    amount=q_brl(hours * rate),
                    time_entry_id=e.id,
                )
            )
        return _settle_rounding(out, minutes_by_rate)

    for rate, minutes in minutes_by_rate.items():
        hours = minutes_to_hours(minutes)
        out.append(
            HourlyCharge(
                description=f"Honorários por horas trabalhadas ({_fmt_hours(hours)} à {format_brl(rate)})",
                hours=q_hours(hours),
                rate=rate,
                amount=q_brl(hours * rate),
            )
        )
    return _settle_rounding(out, minutes_by_rate)


def percentage_fee(amount_recovered: Decimal | None, percentage_rate: Decimal | None) -> Decimal:
    if not amount_recovered or not percentage_rate:
        return ZERO
    return q_brl(Decimal(str(amount_recovered)) * Decimal(str(percentage_rate)) / Decimal(100))


def compute_case_charges(
    config: CaseBilling,
    time_entries: list[TimeEntry],
    expenses: list[CaseExpense],
    outcome: CaseOutcome | None = None,
) -> CaseCharges:
    method = config.billing_method
    charges = CaseCharges(billing_method=method)

    charges.total_hours = q_hours(sum((minutes_to_hours(e.effective_minutes) for e in time_entries), Decimal("0")))
    charges.billable_hours = q_hours(
        sum((minutes_to_hours(e.effective_minutes) for e in time_entries if e.is_billable), Decimal("0"))
    )

    if method in (BillingMethod.HOURLY, BillingMethod.HYBRID):
        charges.hourly_lines = hourly_charges(time_entries, config.hourly_rate)
        charges.time_charges = q_brl(sum((c.amount for c in charges.hourly_lines), ZERO))

    if method == BillingMethod.FIXED:
        charges.fixed_fee = q_brl(config.fixed_fee)

    if method in (BillingMethod.PERCENTAGE, BillingMethod.HYBRID) and outcome is not None:
        charges.recovery_amount = q_brl(outcome.amount_recovered) if outcome.amount_recovered is not None else None
        charges.percentage_fee = percentage_fee(outcome.amount_recovered, config.percentage_rate)
        charges.success_fee = q_brl(outcome.success_fee)

    charges.case_expenses = q_brl(sum((q_brl(x.amount) for x in expenses), ZERO))
    charges.reimbursable_expenses = q_brl(sum((q_brl(x.amount) for x in expenses if x.is_reimbursable), ZERO))

    charges.computed_subtotal = q_brl(
        charges.time_charges
        + charges.fixed_fee
        + charges.percentage_fee
        + charges.success_fee
        + charges.case_expenses
        + charges.reimbursable_expenses
    )
    charges.subtotal = charges.computed_subtotal

    minimum_fee = q_brl(config.minimum_fee) if config.minimum_fee else None
    if minimum_fee and charges.subtotal < minimum_fee:
        charges.subtotal = minimum_fee
        charges.minimum_fee_applied = True

    return charges


def collect_case_billing_data(
    db: Session,
    matter: Matter,
    config: CaseBilling,
    *,
    include_time_entries: bool = False,
    time_entry_ids: list[int] | None = None,
    include_expenses: bool = True,
    expense_ids: list[int] | None = None,
    period_start: dt.date | None = None,
    period_end: dt.date | None = None,
) -> CaseBillingData:
    data = CaseBillingData()

    needs_time = config.billing_method in (BillingMethod.HOURLY, BillingMethod.HYBRID)
    if include_time_entries or needs_time:
        q = db.query(TimeEntry).filter(
            TimeEntry.law_firm_id == matter.law_firm_id,
            TimeEntry.matter_id == matter.id,
            TimeEntry.entry_status == TimeEntryStatus.APPROVED,
        )
        if period_start:
            q = q.filter(TimeEntry.entry_date >= period_start)
        if period_end:
            q = q.filter(TimeEntry.entry_date <= period_end)
        if time_entry_ids:
            q = q.filter(TimeEntry.id.in_(time_entry_ids))
        data.time_entries = q.order_by(TimeEntry.entry_date.asc(), TimeEntry.id.asc()).all()

    if include_expenses:
        q = db.query(CaseExpense).filter(
            CaseExpense.law_firm_id == matter.law_firm_id,
            CaseExpense.matter_id == matter.id,
            CaseExpense.status == ExpenseStatus.APPROVED,
        )
        if period_start:
            q = q.filter(CaseExpense.expense_date >= period_start)
        if period_end:
            q = q.filter(CaseExpense.expense_date <= period_end)
        if expense_ids:
            q = q.filter(CaseExpense.id.in_(expense_ids))
        data.expenses = q.order_by(CaseExpense.expense_date.asc(), CaseExpense.id.asc()).all()

    if config.billing_method in (BillingMethod.PERCENTAGE, BillingMethod.HYBRID):
        data.outcome = (
            db.query(CaseOutcome)
            .filter(CaseOutcome.law_firm_id == matter.law_firm_id, CaseOutcome.matter_id == matter.id)
            .first()
        )

    return data
