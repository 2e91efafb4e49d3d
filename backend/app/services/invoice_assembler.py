"""
Invoice construction shared by the subscription, case and payment-plan generators.

An invoice is header + exactly one detail row + line items, written in a single
transaction: either all rows are committed or none are.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.enums import InvoiceStatus, InvoiceType, LineItemType, PaymentTerms
from app.models.invoice import (
    CaseInvoice,
    Invoice,
    InvoiceLineItem,
    PaymentPlanInvoice,
    SubscriptionInvoice,
)
from app.services.email import send_invoice_email
from app.services.errors import DuplicateInvoiceError, InvalidRequestError
from app.services.money import ZERO, q_brl

logger = logging.getLogger(__name__)

PAYMENT_TERM_DAYS: dict[PaymentTerms, int] = {
    PaymentTerms.IMMEDIATE: 0,
    PaymentTerms.DAYS_7: 7,
    PaymentTerms.DAYS_15: 15,
    PaymentTerms.DAYS_30: 30,
    PaymentTerms.DAYS_45: 45,
    PaymentTerms.DAYS_60: 60,
    PaymentTerms.CUSTOM: 30,
}

# Invoices in these states have not reached the client and may be regenerated.
REPLACEABLE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.PENDING_REVIEW, InvoiceStatus.CANCELLED)

# One invoice per subscription period and per plan installment. Postgres reports the
# constraint name, SQLite only the table.column list.
DUPLICATE_CONSTRAINTS: dict[str, tuple[str, ...]] = {
    "uq_subscription_invoice_period": (
        "subscription_invoices.client_subscription_id",
        "subscription_invoices.billing_period_start",
        "subscription_invoices.billing_period_end",
    ),
    "uq_payment_plan_installment": (
        "payment_plan_invoices.payment_plan_id",
        "payment_plan_invoices.installment_number",
    ),
}

_DETAIL_BY_TYPE: dict[InvoiceType, tuple[type, str]] = {
    InvoiceType.SUBSCRIPTION: (SubscriptionInvoice, "subscription_details"),
    InvoiceType.CASE_BILLING: (CaseInvoice, "case_details"),
    InvoiceType.PAYMENT_PLAN: (PaymentPlanInvoice, "payment_plan_details"),
}


@dataclass
class LineItemDraft:
    line_type: LineItemType
    description: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO
    amount: Decimal | None = None  # explicit total; signed for discount / adjustment lines
    time_entry_id: int | None = None
    is_taxable: bool = False

    @property
    def line_total(self) -> Decimal:
        if self.amount is not None:
            return q_brl(self.amount)
        return q_brl(Decimal(str(self.quantity)) * Decimal(str(self.unit_price)))

    @classmethod
    def charge(cls, line_type: LineItemType, description: str, amount: Decimal) -> LineItemDraft:
        return cls(line_type=line_type, description=description, unit_price=q_brl(amount))

    @classmethod
    def discount(cls, description: str, amount: Decimal) -> LineItemDraft:
        value = -abs(q_brl(amount))
        return cls(line_type=LineItemType.DISCOUNT, description=description, unit_price=value, amount=value)

    @classmethod
    def adjustment(cls, description: str, amount: Decimal) -> LineItemDraft:
        value = q_brl(amount)
        return cls(line_type=LineItemType.ADJUSTMENT, description=description, unit_price=value, amount=value)


@dataclass
class InvoiceHeader:
    law_firm_id: int
    client_id: int
    invoice_type: InvoiceType
    issue_date: dt.date
    due_date: dt.date
    payment_terms: PaymentTerms = PaymentTerms.DAYS_30
    invoice_status: InvoiceStatus = InvoiceStatus.DRAFT
    client_subscription_id: int | None = None
    matter_id: int | None = None
    payment_plan_id: int | None = None
    description: str | None = None
    notes: str | None = None
    applied_discounts: list[dict] = field(default_factory=list)
    payment_methods: list[str] | None = None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def invoice_totals(line_items: list[LineItemDraft]) -> InvoiceTotals:
    """subtotal = non-discount, non-tax lines; discount is reported positive; total = subtotal - discount + tax."""
    subtotal = ZERO
    discount = ZERO
    tax = ZERO
    for li in line_items:
        if li.line_type == LineItemType.DISCOUNT:
            discount += -li.line_total
        elif li.line_type == LineItemType.TAX:
            tax += li.line_total
        else:
            subtotal += li.line_total
    subtotal, discount, tax = q_brl(subtotal), q_brl(discount), q_brl(tax)
    return InvoiceTotals(subtotal=subtotal, discount_amount=discount, tax_amount=tax, total_amount=q_brl(subtotal - discount + tax))


def due_date_for_terms(issue_date: dt.date, payment_terms: PaymentTerms) -> dt.date:
    return issue_date + dt.timedelta(days=PAYMENT_TERM_DAYS.get(payment_terms, 30))


def format_invoice_number(invoice_id: int, issue_date: dt.date) -> str:
    return f"{settings.invoice_number_prefix}-{issue_date.year}-{invoice_id:06d}"


def is_duplicate_violation(error: IntegrityError) -> bool:
    """True only for the one-invoice-per-period / per-installment unique constraints."""
    message = str(error.orig)
    for name, columns in DUPLICATE_CONSTRAINTS.items():
        if name in message:
            return True
        if "UNIQUE constraint failed" in message and all(col in message for col in columns):
            return True
    return False


def ensure_replaceable(invoice: Invoice) -> None:
    if invoice.invoice_status not in REPLACEABLE_STATUSES:
        raise DuplicateInvoiceError(
            f"Fatura {invoice.invoice_number or invoice.id} já foi emitida (status {invoice.invoice_status.value}) e não pode ser regerada"
        )


def assemble_invoice(
    db: Session,
    *,
    header: InvoiceHeader,
    detail: SubscriptionInvoice | CaseInvoice | PaymentPlanInvoice,
    line_items: list[LineItemDraft],
    replace: Invoice | None = None,
    duplicate_message: str = "Fatura já existe",
) -> Invoice:
    """
    Writes header, detail and line items in one transaction.

    `replace` is deleted in the same transaction (force regenerate). A unique
    constraint violation is reported as DuplicateInvoiceError; any other failure
    rolls back and propagates.
    """
    detail_cls, detail_attr = _DETAIL_BY_TYPE[header.invoice_type]
    if not isinstance(detail, detail_cls):
        raise InvalidRequestError(f"Detalhe incompatível com o tipo de fatura {header.invoice_type.value}")
    if header.invoice_status not in (InvoiceStatus.DRAFT, InvoiceStatus.OVERDUE):
        raise InvalidRequestError("Faturas novas devem ser criadas como rascunho ou vencidas")
    if not line_items:
        raise InvalidRequestError("Fatura sem itens")

    totals = invoice_totals(line_items)

    try:
        if replace is not None:
            ensure_replaceable(replace)
            replaced_id = replace.id
            db.delete(replace)
            db.flush()
            logger.info("invoice_replaced: invoice_id=%s", replaced_id)

        invoice = Invoice(
            law_firm_id=header.law_firm_id,
            client_id=header.client_id,
            invoice_type=header.invoice_type,
            invoice_status=header.invoice_status,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            currency=settings.default_currency,
            issue_date=header.issue_date,
            due_date=header.due_date,
            payment_terms=header.payment_terms,
            payment_methods=list(header.payment_methods or settings.invoice_payment_methods),
            client_subscription_id=header.client_subscription_id,
            matter_id=header.matter_id,
            payment_plan_id=header.payment_plan_id,
            description=header.description,
            notes=header.notes,
            applied_discounts=list(header.applied_discounts),
        )
        detail.law_firm_id = header.law_firm_id
        setattr(invoice, detail_attr, detail)
        for idx, li in enumerate(line_items, start=1):
            invoice.line_items.append(
                InvoiceLineItem(
                    law_firm_id=header.law_firm_id,
                    line_type=li.line_type,
                    description=li.description,
                    quantity=li.quantity,
                    unit_price=q_brl(li.unit_price),
                    line_total=li.line_total,
                    time_entry_id=li.time_entry_id,
                    sort_order=idx,
                    is_taxable=li.is_taxable,
                )
            )
        db.add(invoice)
        db.flush()
        invoice.invoice_number = format_invoice_number(invoice.id, header.issue_date)
        db.flush()
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not is_duplicate_violation(e):
            logger.error("invoice_write_failed: type=%s client_id=%s error=%s", header.invoice_type.value, header.client_id, e.orig)
            raise
        logger.warning("invoice_duplicate: type=%s client_id=%s error=%s", header.invoice_type.value, header.client_id, e.orig)
        raise DuplicateInvoiceError(duplicate_message) from e
    except Exception:
        db.rollback()
        raise

    db.refresh(invoice)
    logger.info(
        "invoice_generated: invoice_id=%s number=%s type=%s client_id=%s total=%s",
        invoice.id,
        invoice.invoice_number,
        invoice.invoice_type.value,
        invoice.client_id,
        invoice.total_amount,
    )
    return invoice


def send_invoice(db: Session, invoice: Invoice, *, today: dt.date | None = None) -> bool:
    """
    E-mails a freshly generated invoice to the client. Drafts become sent; overdue
    installments keep their status. Returns False for anything else.
    """
    if invoice.invoice_status not in (InvoiceStatus.DRAFT, InvoiceStatus.OVERDUE):
        return False
    if invoice.invoice_status == InvoiceStatus.DRAFT:
        invoice.invoice_status = InvoiceStatus.SENT
    invoice.sent_date = today or dt.date.today()
    send_invoice_email(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info("invoice_sent: invoice_id=%s number=%s", invoice.id, invoice.invoice_number)
    return True
