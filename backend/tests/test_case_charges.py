import datetime as dt
from decimal import Decimal

import pytest

from app.models.case_billing import CaseBilling, CaseExpense, CaseOutcome
from app.models.enums import BillingMethod, ExpenseStatus, TimeEntryStatus, TimeEntryType
from app.models.time_entry import TimeEntry
from app.services.case_charges import (
    DETAILED_TIME_ENTRY_LIMIT,
    collect_case_billing_data,
    compute_case_charges,
    hourly_charges,
    percentage_fee,
)
from app.services.errors import InvalidRequestError


def _entry(minutes, rate=None, billable=True, description="Audiência"):
    return TimeEntry(
        effective_minutes=minutes,
        billable_rate=Decimal(rate) if rate is not None else None,
        is_billable=billable,
        activity_description=description,
    )


def _config(method, **kw):
    return CaseBilling(billing_method=method, **kw)


def test_hourly_uses_entry_rate_then_case_rate():
    """1.5h at own R$ 200 + 1h at case R$ 300 = R$ 600; non-billable hours are ignored."""
    entries = [_entry(90, "200"), _entry(60), _entry(120, billable=False)]
    charges = compute_case_charges(_config(BillingMethod.HOURLY, hourly_rate=Decimal("300")), entries, [])

    assert charges.time_charges == Decimal("600.00")
    assert charges.total_hours == Decimal("4.5000")
    assert charges.billable_hours == Decimal("2.5000")
    assert charges.subtotal == Decimal("600.00")
    assert [c.amount for c in charges.hourly_lines] == [Decimal("300.00"), Decimal("300.00")]


def test_hourly_lines_add_up_to_exact_time_charge():
    """Three 20-minute entries at R$ 100/h are one hour: R$ 100,00, not 3 x 33,33."""
    entries = [_entry(20), _entry(20), _entry(20)]
    charges = compute_case_charges(_config(BillingMethod.HOURLY, hourly_rate=Decimal("100")), entries, [])

    assert charges.time_charges == Decimal("100.00")
    assert charges.subtotal == Decimal("100.00")
    assert [c.amount for c in charges.hourly_lines] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(c.amount for c in charges.hourly_lines) == charges.time_charges


def test_hourly_without_any_rate_is_rejected():
    with pytest.raises(InvalidRequestError):
        hourly_charges([_entry(60)], None)


def test_many_entries_are_grouped_by_rate():
    entries = [_entry(30, "200") for _ in range(DETAILED_TIME_ENTRY_LIMIT)] + [_entry(60, "400")]
    lines = hourly_charges(entries, Decimal("300"))

    assert len(lines) == 2
    assert lines[0].hours == Decimal("5.0000")
    assert lines[0].amount == Decimal("1000.00")
    assert lines[1].amount == Decimal("400.00")
    assert all(line.time_entry_id is None for line in lines)


def test_fixed_fee():
    charges = compute_case_charges(_config(BillingMethod.FIXED, fixed_fee=Decimal("25000")), [], [])
    assert charges.fixed_fee == Decimal("25000.00")
    assert charges.subtotal == Decimal("25000.00")
    assert charges.minimum_fee_applied is False


def test_percentage_with_outcome():
    outcome = CaseOutcome(amount_recovered=Decimal("100000"), success_fee=Decimal("5000"))
    charges = compute_case_charges(
        _config(BillingMethod.PERCENTAGE, percentage_rate=Decimal("20")), [], [], outcome
    )
    assert charges.percentage_fee == Decimal("20000.00")
    assert charges.success_fee == Decimal("5000.00")
    assert charges.subtotal == Decimal("25000.00")


def test_percentage_without_outcome_is_zero():
    charges = compute_case_charges(_config(BillingMethod.PERCENTAGE, percentage_rate=Decimal("20")), [], [], None)
    assert charges.percentage_fee == Decimal("0.00")
    assert charges.subtotal == Decimal("0.00")


def test_hybrid_adds_hourly_and_percentage():
    outcome = CaseOutcome(amount_recovered=Decimal("10000"), success_fee=None)
    config = _config(BillingMethod.HYBRID, hourly_rate=Decimal("250"), percentage_rate=Decimal("10"))
    charges = compute_case_charges(config, [_entry(120)], [], outcome)
    assert charges.time_charges == Decimal("500.00")
    assert charges.percentage_fee == Decimal("1000.00")
    assert charges.subtotal == Decimal("1500.00")


def test_expenses_and_reimbursable_subset_add_to_subtotal():
    expenses = [
        CaseExpense(amount=Decimal("100"), is_reimbursable=True),
        CaseExpense(amount=Decimal("50"), is_reimbursable=False),
    ]
    charges = compute_case_charges(_config(BillingMethod.FIXED, fixed_fee=Decimal("1000")), [], expenses)
    assert charges.case_expenses == Decimal("150.00")
    assert charges.reimbursable_expenses == Decimal("100.00")
    assert charges.subtotal == Decimal("1250.00")


def test_minimum_fee_floor():
    config = _config(BillingMethod.HOURLY, hourly_rate=Decimal("300"), minimum_fee=Decimal("1000"))
    charges = compute_case_charges(config, [_entry(60)], [])
    assert charges.computed_subtotal == Decimal("300.00")
    assert charges.subtotal == Decimal("1000.00")
    assert charges.minimum_fee_applied is True
    assert charges.minimum_fee_adjustment == Decimal("700.00")


def test_minimum_fee_not_applied_when_exceeded():
    config = _config(BillingMethod.FIXED, fixed_fee=Decimal("5000"), minimum_fee=Decimal("1000"))
    charges = compute_case_charges(config, [], [])
    assert charges.subtotal == Decimal("5000.00")
    assert charges.minimum_fee_applied is False
    assert charges.minimum_fee_adjustment == Decimal("0.00")


def test_percentage_fee_helper():
    assert percentage_fee(Decimal("1234.56"), Decimal("10")) == Decimal("123.46")
    assert percentage_fee(None, Decimal("10")) == Decimal("0.00")


def test_collect_only_approved_entries_and_expenses_in_period(db, firm, matter):
    config = CaseBilling(law_firm_id=firm.id, matter_id=matter.id, billing_method=BillingMethod.HOURLY, hourly_rate=Decimal("300"))
    db.add(config)
    for day, status in ((5, TimeEntryStatus.APPROVED), (6, TimeEntryStatus.DRAFT), (40, TimeEntryStatus.APPROVED)):
        db.add(
            TimeEntry(
                law_firm_id=firm.id,
                matter_id=matter.id,
                entry_type=TimeEntryType.CASE_WORK,
                entry_status=status,
                entry_date=dt.date(2026, 1, 1) + dt.timedelta(days=day),
                effective_minutes=60,
            )
        )
    db.add(
        CaseExpense(
            law_firm_id=firm.id, matter_id=matter.id, amount=Decimal("80"), expense_date=dt.date(2026, 1, 10),
            status=ExpenseStatus.APPROVED,
        )
    )
    db.add(
        CaseExpense(
            law_firm_id=firm.id, matter_id=matter.id, amount=Decimal("90"), expense_date=dt.date(2026, 1, 11),
            status=ExpenseStatus.PENDING,
        )
    )
    db.commit()

    data = collect_case_billing_data(
        db, matter, config, period_start=dt.date(2026, 1, 1), period_end=dt.date(2026, 1, 31)
    )
    assert len(data.time_entries) == 1
    assert [e.amount for e in data.expenses] == [Decimal("80.00")]
    assert data.outcome is None
