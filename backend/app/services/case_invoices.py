from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.case_billing import CaseBilling
from app.models.enums import BillingMethod, DiscountScope, InvoiceType, LineItemType, PaymentTerms
from app.models.firm import Matter
from app.models.invoice import CaseInvoice
from app.schemas.generation import CaseInvoiceRequest
from app.schemas.invoice import BatchInvoiceGenerationResult, InvoiceGenerationResult
from app.services.case_charges import CaseBillingData, CaseCharges, collect_case_billing_data, compute_case_charges
from app.services.discounts import resolve_discounts_or_none
from app.services.errors import INTERNAL_ERROR_MESSAGE, InvalidRequestError, NotFoundError
from app.services.invoice_assembler import InvoiceHeader, LineItemDraft, assemble_invoice, due_date_for_terms
from app.services.money import ZERO, format_brl
from app.services.results import BatchCollector, auto_send_invoice, invoice_succeeded, run_generation

logger = logging.getLogger(__name__)


def _rate_label(rate: Decimal | None) -> str:
    return f"{Decimal(str(rate or 0)).normalize():f}".replace(".", ",")


def case_line_items(config: CaseBilling, charges: CaseCharges, data: CaseBillingData) -> list[LineItemDraft]:
    """Fee, expense and minimum-fee lines; they always add up to charges.subtotal."""
    lines: list[LineItemDraft] = []

    for hc in charges.hourly_lines:
        lines.append(
            LineItemDraft(
                line_type=LineItemType.TIME_ENTRY if hc.time_entry_id else LineItemType.CASE_FEE,
                description=hc.description,
                quantity=hc.hours,
                unit_price=hc.rate,
                amount=hc.amount,
                time_entry_id=hc.time_entry_id,
            )
        )

    if charges.fixed_fee > ZERO:
        lines.append(LineItemDraft.charge(LineItemType.CASE_FEE, "Honorários de caso - Taxa fixa", charges.fixed_fee))

    if charges.percentage_fee > ZERO:
        recovered = format_brl(charges.recovery_amount or ZERO)
        lines.append(
            LineItemDraft.charge(
                LineItemType.CASE_FEE,
                f"Honorários de êxito ({_rate_label(config.percentage_rate)}% de {recovered})",
                charges.percentage_fee,
            )
        )
    if charges.success_fee > ZERO:
        lines.append(LineItemDraft.charge(LineItemType.SUCCESS_FEE, "Taxa adicional de sucesso", charges.success_fee))

    for expense in data.expenses:
        lines.append(LineItemDraft.charge(LineItemType.EXPENSE, expense.description or "Despesa do caso", expense.amount))
    if charges.reimbursable_expenses > ZERO:
        lines.append(
            LineItemDraft.charge(LineItemType.EXPENSE, "Reembolso de despesas", charges.reimbursable_expenses)
        )

    if charges.minimum_fee_applied:
        lines.append(LineItemDraft.adjustment("Ajuste para taxa mínima", charges.minimum_fee_adjustment))

    return lines


def _get_matter(db: Session, *, law_firm_id: int, matter_id: int) -> Matter:
    matter = db.query(Matter).filter(Matter.id == matter_id, Matter.law_firm_id == law_firm_id).first()
    if not matter:
        raise NotFoundError("Caso não encontrado")
    return matter


def _get_billing_config(db: Session, matter: Matter) -> CaseBilling:
    config = (
        db.query(CaseBilling)
        .filter(CaseBilling.matter_id == matter.id, CaseBilling.law_firm_id == matter.law_firm_id)
        .first()
    )
    if not config:
        raise NotFoundError("Configuração de cobrança não encontrada")
    return config


def _generate(db: Session, request: CaseInvoiceRequest, today: dt.date) -> InvoiceGenerationResult:
    matter = _get_matter(db, law_firm_id=request.law_firm_id, matter_id=request.matter_id)
    config = _get_billing_config(db, matter)

    data = collect_case_billing_data(
        db,
        matter,
        config,
        include_time_entries=request.include_time_entries,
        time_entry_ids=request.time_entry_ids,
        include_expenses=request.include_expenses,
        expense_ids=request.expense_ids,
        period_start=request.billing_period_start,
        period_end=request.billing_period_end,
    )
    charges = compute_case_charges(config, data.time_entries, data.expenses, data.outcome)
    lines = case_line_items(config, charges, data)
    if not lines:
        raise InvalidRequestError("Nenhum valor a faturar para este caso")

    warnings: list[str] = []
    if charges.billing_method in (BillingMethod.PERCENTAGE, BillingMethod.HYBRID) and data.outcome is None:
        warnings.append("Resultado do caso ainda não registrado; honorários de êxito não incluídos")

    resolution = resolve_discounts_or_none(
        db,
        law_firm_id=matter.law_firm_id,
        client_id=matter.client_id,
        matter_id=matter.id,
        base_amount=charges.subtotal,
        scope=DiscountScope.CASE_BILLING,
        today=today,
    )
    for d in resolution.applicable_discounts:
        lines.append(LineItemDraft.discount(f"Desconto - {d.description}", d.amount))

    issue_date = request.issue_date or today
    payment_terms = config.payment_terms or PaymentTerms.DAYS_30
    header = InvoiceHeader(
        law_firm_id=matter.law_firm_id,
        client_id=matter.client_id,
        invoice_type=InvoiceType.CASE_BILLING,
        issue_date=issue_date,
        due_date=due_date_for_terms(issue_date, payment_terms),
        payment_terms=payment_terms,
        matter_id=matter.id,
        description=f"Fatura do caso - {matter.title}",
        notes=request.notes,
        applied_discounts=[d.as_record() for d in resolution.applicable_discounts],
    )
    detail = CaseInvoice(
        matter_id=matter.id,
        case_billing_id=config.id,
        billing_method=config.billing_method,
        total_hours=charges.total_hours,
        billable_hours=charges.billable_hours,
        hourly_rate=config.hourly_rate,
        time_charges=charges.time_charges,
        fixed_fee=charges.fixed_fee,
        recovery_amount=charges.recovery_amount,
        percentage_rate=config.percentage_rate,
        percentage_fee=charges.percentage_fee,
        success_fee=charges.success_fee,
        case_expenses=charges.case_expenses,
        reimbursable_expenses=charges.reimbursable_expenses,
        minimum_fee=config.minimum_fee,
        minimum_fee_applied=charges.minimum_fee_applied,
        is_final_invoice=request.is_final_invoice,
        allows_payment_plan=config.allows_payment_plan,
    )

    invoice = assemble_invoice(db, header=header, detail=detail, line_items=lines)
    if request.auto_send:
        auto_send_invoice(db, invoice, warnings, today=today)
    return invoice_succeeded(invoice, warnings)


def generate_case_invoice(
    db: Session, request: CaseInvoiceRequest, *, today: dt.date | None = None
) -> InvoiceGenerationResult:
    today = today or dt.date.today()
    return run_generation(db, lambda: _generate(db, request, today), kind="case", target_id=request.matter_id)


def generate_batch_case_invoices(
    db: Session,
    *,
    law_firm_id: int,
    matter_ids: list[int],
    billing_period_start: dt.date | None = None,
    billing_period_end: dt.date | None = None,
    include_time_entries: bool = False,
    include_expenses: bool = True,
    auto_send: bool = False,
    today: dt.date | None = None,
) -> BatchInvoiceGenerationResult:
    today = today or dt.date.today()
    batch = BatchCollector(
        law_firm_id=law_firm_id,
        invoice_type=InvoiceType.CASE_BILLING.value,
        period_start=billing_period_start,
        period_end=billing_period_end,
    )

    try:
        client_by_matter = dict(
            db.query(Matter.id, Matter.client_id)
            .filter(Matter.law_firm_id == law_firm_id, Matter.id.in_(matter_ids))
            .all()
        )
    except Exception:
        db.rollback()
        logger.exception("case_batch_lookup_failed: law_firm_id=%s", law_firm_id)
        return batch.abort(db, INTERNAL_ERROR_MESSAGE)

    for matter_id in matter_ids:
        result = generate_case_invoice(
            db,
            CaseInvoiceRequest(
                law_firm_id=law_firm_id,
                matter_id=matter_id,
                billing_period_start=billing_period_start,
                billing_period_end=billing_period_end,
                include_time_entries=include_time_entries,
                include_expenses=include_expenses,
                auto_send=auto_send,
            ),
            today=today,
        )
        batch.add(client_by_matter.get(matter_id), result)

    return batch.finish(db)
