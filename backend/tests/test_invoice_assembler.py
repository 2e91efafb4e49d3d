from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.models.case_billing import CaseBilling
from app.models.enums import BillingMethod, InvoiceType, LineItemType, PaymentTerms
from app.models.invoice import CaseInvoice, Invoice, InvoiceLineItem
from app.schemas.generation import CaseInvoiceRequest
from app.services import case_invoices
from app.services.errors import DuplicateInvoiceError
from app.services.invoice_assembler import (
    InvoiceHeader,
    LineItemDraft,
    assemble_invoice,
    due_date_for_terms,
    invoice_totals,
)


def _header(matter, today):
    return InvoiceHeader(
        law_firm_id=matter.law_firm_id,
        client_id=matter.client_id,
        invoice_type=InvoiceType.CASE_BILLING,
        issue_date=today,
        due_date=due_date_for_terms(today, PaymentTerms.DAYS_30),
        matter_id=matter.id,
    )


def test_totals_split_discount_and_tax():
    totals = invoice_totals(
        [
            LineItemDraft.charge(LineItemType.CASE_FEE, "Honorários", Decimal("1000")),
            LineItemDraft.discount("Desconto", Decimal("100")),
            LineItemDraft(line_type=LineItemType.TAX, description="ISS", unit_price=Decimal("45")),
        ]
    )
    assert totals.subtotal == Decimal("1000.00")
    assert totals.discount_amount == Decimal("100.00")
    assert totals.tax_amount == Decimal("45.00")
    assert totals.total_amount == Decimal("945.00")


def test_failed_line_item_write_leaves_no_rows(db, matter, today):
    """A NOT NULL failure on a line item is not a duplicate and nothing from the invoice is kept."""
    lines = [
        LineItemDraft.charge(LineItemType.CASE_FEE, "Honorários", Decimal("500")),
        LineItemDraft(line_type=LineItemType.CASE_FEE, description=None, unit_price=Decimal("10")),
    ]

    with pytest.raises(IntegrityError) as excinfo:
        assemble_invoice(
            db,
            header=_header(matter, today),
            detail=CaseInvoice(matter_id=matter.id, billing_method=BillingMethod.FIXED),
            line_items=lines,
        )

    assert not isinstance(excinfo.value, DuplicateInvoiceError)
    assert db.query(Invoice).count() == 0
    assert db.query(CaseInvoice).count() == 0
    assert db.query(InvoiceLineItem).count() == 0


def test_unexpected_write_failure_is_internal_error(db, matter, today, monkeypatch):
    db.add(CaseBilling(law_firm_id=matter.law_firm_id, matter_id=matter.id, billing_method=BillingMethod.FIXED,
                       fixed_fee=Decimal("2000")))
    db.commit()

    def broken_lines(config, charges, data):
        return [LineItemDraft(line_type=LineItemType.CASE_FEE, description=None, unit_price=Decimal("2000"))]

    monkeypatch.setattr(case_invoices, "case_line_items", broken_lines)

    result = case_invoices.generate_case_invoice(
        db, CaseInvoiceRequest(law_firm_id=matter.law_firm_id, matter_id=matter.id), today=today
    )

    assert result.success is False
    assert result.error_code == "internal"
    assert result.error == "Erro interno do servidor"
    assert db.query(Invoice).count() == 0
    assert db.query(CaseInvoice).count() == 0
