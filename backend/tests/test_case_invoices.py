import datetime as dt
from decimal import Decimal

from app.models.case_billing import CaseBilling, CaseExpense, CaseOutcome
from app.models.enums import (
    BillingMethod,
    ExpenseStatus,
    InvoiceStatus,
    LineItemType,
    PaymentTerms,
    TimeEntryStatus,
    TimeEntryType,
)
from app.models.firm import Matter
from app.models.generation_log import InvoiceGenerationLog
from app.models.invoice import Invoice
from app.models.time_entry import TimeEntry
from app.schemas.generation import CaseInvoiceRequest
from app.services import discounts
from app.services.case_invoices import generate_batch_case_invoices, generate_case_invoice


def _configure(db, matter, method, **kw):
    config = CaseBilling(law_firm_id=matter.law_firm_id, matter_id=matter.id, billing_method=method, **kw)
    db.add(config)
    db.commit()
    return config


def _request(matter, **kw):
    return CaseInvoiceRequest(law_firm_id=matter.law_firm_id, matter_id=matter.id, **kw)


def _hours(db, matter, minutes, rate=None, day=dt.date(2026, 2, 10)):
    db.add(
        TimeEntry(
            law_firm_id=matter.law_firm_id,
            matter_id=matter.id,
            entry_type=TimeEntryType.CASE_WORK,
            entry_status=TimeEntryStatus.APPROVED,
            entry_date=day,
            activity_description="Petição inicial",
            effective_minutes=minutes,
            billable_rate=Decimal(rate) if rate else None,
        )
    )
    db.commit()


def test_fixed_fee_case(db, matter, today):
    _configure(db, matter, BillingMethod.FIXED, fixed_fee=Decimal("25000"))

    result = generate_case_invoice(db, _request(matter), today=today)

    assert result.success is True
    inv = result.invoice
    assert len(inv.line_items) == 1
    assert inv.line_items[0].line_type == LineItemType.CASE_FEE
    assert inv.line_items[0].line_total == Decimal("25000.00")
    assert inv.subtotal == Decimal("25000.00")
    assert inv.total_amount == Decimal("25000.00")
    assert inv.invoice_status == InvoiceStatus.DRAFT
    assert inv.payment_terms == PaymentTerms.DAYS_30
    assert inv.due_date == today + dt.timedelta(days=30)
    assert inv.case_details.fixed_fee == Decimal("25000.00")


def test_hourly_case_with_time_entry_lines(db, matter, today):
    _configure(db, matter, BillingMethod.HOURLY, hourly_rate=Decimal("300"), payment_terms=PaymentTerms.DAYS_15)
    _hours(db, matter, 90, rate="200")
    _hours(db, matter, 60)

    result = generate_case_invoice(db, _request(matter), today=today)

    inv = result.invoice
    assert [li.line_type for li in inv.line_items] == [LineItemType.TIME_ENTRY, LineItemType.TIME_ENTRY]
    assert all(li.time_entry_id is not None for li in inv.line_items)
    assert inv.line_items[0].quantity == Decimal("1.5")
    assert inv.line_items[0].unit_price == Decimal("200.00")
    assert inv.case_details.time_charges == Decimal("600.00")
    assert inv.case_details.billable_hours == Decimal("2.5")
    assert inv.total_amount == Decimal("600.00")
    assert inv.due_date == today + dt.timedelta(days=15)


def test_minimum_fee_adds_adjustment_line(db, matter, today):
    _configure(db, matter, BillingMethod.HOURLY, hourly_rate=Decimal("300"), minimum_fee=Decimal("1000"))
    _hours(db, matter, 60)

    result = generate_case_invoice(db, _request(matter), today=today)

    inv = result.invoice
    assert inv.line_items[-1].line_type == LineItemType.ADJUSTMENT
    assert inv.line_items[-1].line_total == Decimal("700.00")
    assert inv.subtotal == Decimal("1000.00")
    assert inv.case_details.minimum_fee_applied is True


def test_percentage_case_with_outcome(db, matter, today):
    _configure(db, matter, BillingMethod.PERCENTAGE, percentage_rate=Decimal("20"))
    db.add(
        CaseOutcome(
            law_firm_id=matter.law_firm_id,
            matter_id=matter.id,
            amount_recovered=Decimal("100000"),
            success_fee=Decimal("5000"),
        )
    )
    db.commit()

    result = generate_case_invoice(db, _request(matter), today=today)

    inv = result.invoice
    assert [li.line_type for li in inv.line_items] == [LineItemType.CASE_FEE, LineItemType.SUCCESS_FEE]
    assert inv.line_items[0].description == "Honorários de êxito (20% de R$ 100.000,00)"
    assert inv.total_amount == Decimal("25000.00")
    assert result.warnings == []


def test_percentage_case_without_outcome_has_nothing_to_bill(db, matter, today):
    _configure(db, matter, BillingMethod.PERCENTAGE, percentage_rate=Decimal("20"))

    result = generate_case_invoice(db, _request(matter), today=today)

    assert result.success is False
    assert result.error == "Nenhum valor a faturar para este caso"
    assert db.query(Invoice).count() == 0


def test_percentage_case_without_outcome_bills_expenses_with_warning(db, matter, today):
    _configure(db, matter, BillingMethod.PERCENTAGE, percentage_rate=Decimal("20"))
    db.add(
        CaseExpense(
            law_firm_id=matter.law_firm_id,
            matter_id=matter.id,
            description="Perícia",
            amount=Decimal("300"),
            expense_date=dt.date(2026, 2, 1),
            status=ExpenseStatus.APPROVED,
        )
    )
    db.commit()

    result = generate_case_invoice(db, _request(matter), today=today)

    assert result.success is True
    assert result.warnings == ["Resultado do caso ainda não registrado; honorários de êxito não incluídos"]
    assert result.invoice.case_details.percentage_fee == Decimal("0.00")
    assert result.invoice.case_details.case_expenses == Decimal("300.00")


def test_expense_lines_add_up_to_subtotal(db, matter, today):
    _configure(db, matter, BillingMethod.FIXED, fixed_fee=Decimal("1000"))
    for amount, reimbursable in (("100", True), ("50", False)):
        db.add(
            CaseExpense(
                law_firm_id=matter.law_firm_id,
                matter_id=matter.id,
                description="Custas",
                amount=Decimal(amount),
                expense_date=dt.date(2026, 2, 1),
                is_reimbursable=reimbursable,
                status=ExpenseStatus.APPROVED,
            )
        )
    db.commit()

    result = generate_case_invoice(db, _request(matter), today=today)

    inv = result.invoice
    assert sum(li.line_total for li in inv.line_items) == inv.subtotal
    assert inv.case_details.case_expenses == Decimal("150.00")
    assert inv.case_details.reimbursable_expenses == Decimal("100.00")


def test_missing_billing_configuration(db, matter, today):
    result = generate_case_invoice(db, _request(matter), today=today)

    assert result.success is False
    assert result.error == "Configuração de cobrança não encontrada"
    assert result.error_code == "not_found"
    assert db.query(Invoice).count() == 0


def test_matter_of_another_firm_is_not_found(db, matter, today):
    result = generate_case_invoice(
        db, CaseInvoiceRequest(law_firm_id=matter.law_firm_id + 1, matter_id=matter.id), today=today
    )
    assert result.success is False
    assert result.error == "Caso não encontrado"


def test_discount_failure_does_not_block_invoice(db, matter, today, monkeypatch):
    _configure(db, matter, BillingMethod.FIXED, fixed_fee=Decimal("25000"))

    def boom(*args, **kwargs):
        raise RuntimeError("discount lookup failed")

    monkeypatch.setattr(discounts, "resolve_discounts", boom)

    result = generate_case_invoice(db, _request(matter), today=today)

    assert result.success is True
    assert result.invoice.discount_amount == Decimal("0.00")
    assert result.invoice.total_amount == Decimal("25000.00")


def test_batch_case_invoices(db, firm, client, matter, today):
    _configure(db, matter, BillingMethod.FIXED, fixed_fee=Decimal("3000"))
    unconfigured = Matter(law_firm_id=firm.id, client_id=client.id, title="Ação de Cobrança")
    db.add(unconfigured)
    db.commit()

    result = generate_batch_case_invoices(
        db, law_firm_id=firm.id, matter_ids=[matter.id, unconfigured.id, 999], today=today
    )

    assert result.success is True
    assert result.total_requested == 3
    assert result.successful_generations == 1
    assert result.failed_generations == 2
    assert len(result.invoices) == 1
    assert [e.client_id for e in result.errors] == [client.id, None]
    assert result.errors[1].error == "Caso não encontrado"

    log = db.query(InvoiceGenerationLog).one()
    assert log.invoice_type == "case_billing"
    assert log.failed_generations == 2
