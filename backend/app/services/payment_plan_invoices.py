from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.enums import GenerationType, InvoiceStatus, InvoiceType, LineItemType, PaymentPlanStatus, PaymentTerms
from app.models.invoice import PaymentPlanInvoice
from app.models.payment_plan import PaymentPlan
from app.schemas.generation import PaymentPlanInvoiceRequest
from app.schemas.invoice import BatchInvoiceGenerationResult, InvoiceGenerationResult, PaymentPlanSummary
from app.services.errors import INTERNAL_ERROR_MESSAGE, InvalidRequestError, NotFoundError
from app.services.installments import advance_plan, installment_due_date, next_installment_number, plan_installment
from app.services.invoice_assembler import InvoiceHeader, LineItemDraft, assemble_invoice, ensure_replaceable
from app.services.money import ZERO, q_brl
from app.services.results import BatchCollector, auto_send_invoice, invoice_succeeded, run_generation

logger = logging.getLogger(__name__)

PLAN_NOT_FOUND_MESSAGE = "Plano de pagamento não encontrado"
DUPLICATE_INSTALLMENT_MESSAGE = "Fatura para esta parcela já existe"


def _get_plan(db: Session, *, law_firm_id: int, payment_plan_id: int) -> PaymentPlan:
    plan = (
        db.query(PaymentPlan)
        .filter(PaymentPlan.id == payment_plan_id, PaymentPlan.law_firm_id == law_firm_id)
        .first()
    )
    if not plan:
        raise NotFoundError(PLAN_NOT_FOUND_MESSAGE)
    return plan


def _generate(db: Session, request: PaymentPlanInvoiceRequest, today: dt.date) -> InvoiceGenerationResult:
    plan = _get_plan(db, law_firm_id=request.law_firm_id, payment_plan_id=request.payment_plan_id)
    if plan.status == PaymentPlanStatus.CANCELLED:
        raise InvalidRequestError("Plano de pagamento cancelado")

    highest_before = next_installment_number(db, plan.id) - 1
    schedule = plan_installment(
        db,
        plan,
        installment_number=request.installment_number,
        scheduled_date=request.scheduled_date,
        force=request.force_regenerate,
        today=today,
    )

    warnings: list[str] = []
    replace = None
    if schedule.existing is not None:
        ensure_replaceable(schedule.existing.invoice)
        replace = schedule.existing.invoice
        warnings.append(f"Fatura anterior {replace.invoice_number or replace.id} substituída")

    n, total = schedule.installment_number, schedule.total_installments
    lines = [LineItemDraft.charge(LineItemType.CASE_FEE, f"Parcela {n}/{total}", schedule.installment_amount)]
    if schedule.late_fee_amount > ZERO:
        rate = f"{schedule.late_fee_rate.normalize():f}".replace(".", ",")
        lines.append(LineItemDraft.charge(LineItemType.LATE_FEE, f"Taxa de atraso ({rate}%)", schedule.late_fee_amount))
        warnings.append(f"Parcela vencida há {schedule.days_overdue} dias após a carência; taxa de atraso aplicada")

    title = plan.matter.title if plan.matter is not None else "Plano de Pagamento"
    header = InvoiceHeader(
        law_firm_id=plan.law_firm_id,
        client_id=plan.client_id,
        invoice_type=InvoiceType.PAYMENT_PLAN,
        invoice_status=InvoiceStatus.OVERDUE if schedule.is_overdue else InvoiceStatus.DRAFT,
        issue_date=request.issue_date or today,
        due_date=schedule.due_date,
        payment_terms=PaymentTerms.DAYS_7,
        matter_id=plan.matter_id,
        payment_plan_id=plan.id,
        description=f"Parcela {n}/{total} - {title}",
        notes=request.notes,
    )
    detail = PaymentPlanInvoice(
        payment_plan_id=plan.id,
        installment_number=n,
        total_installments=total,
        installment_amount=schedule.installment_amount,
        scheduled_date=schedule.due_date,
        grace_period_days=schedule.grace_period_days,
        late_fee_rate=schedule.late_fee_rate,
        late_fee_amount=schedule.late_fee_amount,
        is_final_installment=schedule.is_final,
        auto_generate_next=bool(plan.auto_generate_invoices) and not schedule.is_final,
    )
    advance_plan(plan, highest_generated=max(highest_before, n))

    invoice = assemble_invoice(
        db,
        header=header,
        detail=detail,
        line_items=lines,
        replace=replace,
        duplicate_message=DUPLICATE_INSTALLMENT_MESSAGE,
    )
    if request.auto_send:
        auto_send_invoice(db, invoice, warnings, today=today)
    return invoice_succeeded(invoice, warnings)


def generate_payment_plan_invoice(
    db: Session, request: PaymentPlanInvoiceRequest, *, today: dt.date | None = None
) -> InvoiceGenerationResult:
    today = today or dt.date.today()
    return run_generation(
        db, lambda: _generate(db, request, today), kind="payment_plan", target_id=request.payment_plan_id
    )


def generate_all_remaining_installments(
    db: Session,
    *,
    law_firm_id: int,
    payment_plan_id: int,
    start_from_installment: int | None = None,
    auto_send: bool = False,
    today: dt.date | None = None,
) -> BatchInvoiceGenerationResult:
    """Every installment from `start_from_installment` (default: next unfilled) up to the last one."""
    today = today or dt.date.today()
    batch = BatchCollector(law_firm_id=law_firm_id, invoice_type=InvoiceType.PAYMENT_PLAN.value)

    try:
        plan = _get_plan(db, law_firm_id=law_firm_id, payment_plan_id=payment_plan_id)
        client_id, installments = plan.client_id, plan.installments
        start = start_from_installment or next_installment_number(db, plan.id)
    except NotFoundError as e:
        return batch.abort(db, str(e))
    except Exception:
        db.rollback()
        logger.exception("installments_batch_lookup_failed: payment_plan_id=%s", payment_plan_id)
        return batch.abort(db, INTERNAL_ERROR_MESSAGE)

    for n in range(start, installments + 1):
        result = generate_payment_plan_invoice(
            db,
            PaymentPlanInvoiceRequest(
                law_firm_id=law_firm_id,
                payment_plan_id=payment_plan_id,
                installment_number=n,
                auto_send=auto_send,
            ),
            today=today,
        )
        batch.add(client_id, result, label=f"Parcela {n}")

    return batch.finish(db)


def generate_overdue_installments(
    db: Session,
    *,
    law_firm_id: int,
    grace_period_days: int = 5,
    today: dt.date | None = None,
) -> BatchInvoiceGenerationResult:
    """
    Next installment of every active plan whose next payment date is more than
    `grace_period_days` in the past. Invoices are generated with late fees and sent.
    """
    today = today or dt.date.today()
    cutoff = today - dt.timedelta(days=grace_period_days)
    batch = BatchCollector(law_firm_id=law_firm_id, invoice_type=InvoiceType.PAYMENT_PLAN.value)

    try:
        targets = (
            db.query(PaymentPlan.id, PaymentPlan.client_id)
            .filter(
                PaymentPlan.law_firm_id == law_firm_id,
                PaymentPlan.status == PaymentPlanStatus.ACTIVE,
                func.coalesce(PaymentPlan.next_payment_date, PaymentPlan.start_date) < cutoff,
            )
            .order_by(PaymentPlan.id.asc())
            .all()
        )
    except Exception:
        db.rollback()
        logger.exception("overdue_installments_lookup_failed: law_firm_id=%s", law_firm_id)
        return batch.abort(db, INTERNAL_ERROR_MESSAGE, generation_type=GenerationType.SCHEDULED)

    for payment_plan_id, client_id in targets:
        result = generate_payment_plan_invoice(
            db,
            PaymentPlanInvoiceRequest(law_firm_id=law_firm_id, payment_plan_id=payment_plan_id, auto_send=True),
            today=today,
        )
        batch.add(client_id, result)

    return batch.finish(db, generation_type=GenerationType.SCHEDULED)


def payment_plan_summary(db: Session, *, law_firm_id: int, payment_plan_id: int) -> PaymentPlanSummary:
    plan = _get_plan(db, law_firm_id=law_firm_id, payment_plan_id=payment_plan_id)
    generated = (
        db.query(PaymentPlanInvoice)
        .filter(PaymentPlanInvoice.payment_plan_id == plan.id)
        .order_by(PaymentPlanInvoice.installment_number.asc())
        .all()
    )

    total_invoiced = q_brl(sum((Decimal(str(d.invoice.total_amount)) for d in generated), ZERO))
    late_fees = q_brl(sum((Decimal(str(d.late_fee_amount or 0)) for d in generated), ZERO))
    principal_invoiced = sum((Decimal(str(d.installment_amount)) for d in generated), ZERO)

    next_n = next_installment_number(db, plan.id)
    has_next = next_n <= plan.installments
    return PaymentPlanSummary(
        payment_plan_id=plan.id,
        total_installments=plan.installments,
        generated_installments=len(generated),
        remaining_installments=max(0, plan.installments - len(generated)),
        next_installment_number=next_n if has_next else None,
        next_due_date=installment_due_date(plan, next_n) if has_next else None,
        total_invoiced=total_invoiced,
        total_late_fees=late_fees,
        remaining_amount=q_brl(max(ZERO, Decimal(str(plan.total_amount)) - principal_invoiced)),
        status=plan.status.value,
    )
