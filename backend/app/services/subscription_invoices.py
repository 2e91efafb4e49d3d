from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.enums import BillingCycle, DiscountScope, InvoiceType, LineItemType, PaymentTerms, SubscriptionStatus
from app.models.invoice import SubscriptionInvoice
from app.models.subscription import ClientSubscription
from app.schemas.generation import SubscriptionInvoiceRequest
from app.schemas.invoice import BatchInvoiceGenerationResult, InvoiceGenerationResult
from app.services.discounts import resolve_discounts_or_none
from app.services.errors import INTERNAL_ERROR_MESSAGE, DuplicateInvoiceError, InvalidRequestError, NotFoundError
from app.services.installments import add_months
from app.services.invoice_assembler import InvoiceHeader, LineItemDraft, assemble_invoice, ensure_replaceable
from app.services.money import q_brl
from app.services.proration import calculate_proration
from app.services.results import BatchCollector, auto_send_invoice, invoice_succeeded, run_generation
from app.services.usage import calculate_subscription_usage, service_type_name

logger = logging.getLogger(__name__)

DUPLICATE_PERIOD_MESSAGE = "Fatura já existe para este período"

# Days from issue to due date, per billing cycle.
CYCLE_DUE_DAYS = {
    BillingCycle.MONTHLY: 30,
    BillingCycle.QUARTERLY: 15,
    BillingCycle.YEARLY: 45,
}
CYCLE_MONTHS = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.YEARLY: 12,
}


def next_billing_date(period_end: dt.date, cycle: BillingCycle) -> dt.date:
    return add_months(period_end, CYCLE_MONTHS.get(cycle, 1))


def _get_subscription(db: Session, *, law_firm_id: int, subscription_id: int) -> ClientSubscription:
    sub = (
        db.query(ClientSubscription)
        .filter(ClientSubscription.id == subscription_id, ClientSubscription.law_firm_id == law_firm_id)
        .first()
    )
    if not sub:
        raise NotFoundError("Assinatura não encontrada")
    return sub


def _existing_period_invoice(db: Session, sub: ClientSubscription, start: dt.date, end: dt.date) -> SubscriptionInvoice | None:
    return (
        db.query(SubscriptionInvoice)
        .filter(
            SubscriptionInvoice.client_subscription_id == sub.id,
            SubscriptionInvoice.billing_period_start == start,
            SubscriptionInvoice.billing_period_end == end,
        )
        .first()
    )


def _generate(db: Session, request: SubscriptionInvoiceRequest, today: dt.date) -> InvoiceGenerationResult:
    sub = _get_subscription(db, law_firm_id=request.law_firm_id, subscription_id=request.client_subscription_id)
    start, end = request.billing_period_start, request.billing_period_end
    if sub.start_date > end or (sub.end_date is not None and sub.end_date < start):
        raise InvalidRequestError("Assinatura não está ativa no período informado")

    warnings: list[str] = []
    replace = None
    existing = _existing_period_invoice(db, sub, start, end)
    if existing is not None:
        if not request.force_regenerate:
            raise DuplicateInvoiceError(DUPLICATE_PERIOD_MESSAGE)
        ensure_replaceable(existing.invoice)
        replace = existing.invoice
        warnings.append(f"Fatura anterior {replace.invoice_number or replace.id} substituída")

    plan = sub.plan
    usage = calculate_subscription_usage(db, sub, period_start=start, period_end=end)
    proration = calculate_proration(
        subscription_start=sub.start_date, subscription_end=sub.end_date, period_start=start, period_end=end
    )

    base_fee = q_brl(Decimal(str(plan.monthly_fee)) * proration.proration_factor)
    if proration.is_prorated:
        pct = (proration.proration_factor * 100).quantize(Decimal("1"))
        fee_description = f"Assinatura {plan.plan_name} (proporcional {pct}%)"
    else:
        fee_description = f"Assinatura {plan.plan_name} ({start:%d/%m/%Y} a {end:%d/%m/%Y})"
    lines = [LineItemDraft.charge(LineItemType.SUBSCRIPTION_FEE, fee_description, base_fee)]

    for service_type, used in usage.services_used.items():
        if used["overage"] <= 0:
            continue
        lines.append(
            LineItemDraft(
                line_type=LineItemType.SERVICE_FEE,
                description=f"Excesso de uso - {service_type_name(service_type)} ({used['overage']} {used['unit']})",
                quantity=Decimal(used["overage"]),
                unit_price=usage.overage_rates[service_type],
            )
        )

    gross = q_brl(sum((li.line_total for li in lines), Decimal("0")))
    resolution = resolve_discounts_or_none(
        db,
        law_firm_id=sub.law_firm_id,
        client_id=sub.client_id,
        matter_id=None,
        base_amount=gross,
        scope=DiscountScope.SUBSCRIPTION,
        today=today,
    )
    for d in resolution.applicable_discounts:
        lines.append(LineItemDraft.discount(f"Desconto - {d.description}", d.amount))

    issue_date = request.issue_date or today
    header = InvoiceHeader(
        law_firm_id=sub.law_firm_id,
        client_id=sub.client_id,
        invoice_type=InvoiceType.SUBSCRIPTION,
        issue_date=issue_date,
        due_date=issue_date + dt.timedelta(days=CYCLE_DUE_DAYS.get(plan.billing_cycle, 30)),
        payment_terms=PaymentTerms.DAYS_30,
        client_subscription_id=sub.id,
        description=f"Fatura de assinatura - {plan.plan_name}",
        notes=request.notes,
        applied_discounts=[d.as_record() for d in resolution.applicable_discounts],
    )
    detail = SubscriptionInvoice(
        client_subscription_id=sub.id,
        billing_period_start=start,
        billing_period_end=end,
        billing_cycle=plan.billing_cycle,
        services_included=usage.services_included,
        services_used=usage.services_used,
        overage_charges=usage.overage_charges,
        is_prorated=proration.is_prorated,
        proration_factor=proration.proration_factor,
        proration_reason=proration.proration_reason,
        auto_renew=sub.auto_renew,
        next_billing_date=next_billing_date(end, plan.billing_cycle),
    )

    invoice = assemble_invoice(
        db, header=header, detail=detail, line_items=lines, replace=replace, duplicate_message=DUPLICATE_PERIOD_MESSAGE
    )
    if request.auto_send:
        auto_send_invoice(db, invoice, warnings, today=today)
    return invoice_succeeded(invoice, warnings)


def generate_subscription_invoice(
    db: Session, request: SubscriptionInvoiceRequest, *, today: dt.date | None = None
) -> InvoiceGenerationResult:
    today = today or dt.date.today()
    return run_generation(
        db, lambda: _generate(db, request, today), kind="subscription", target_id=request.client_subscription_id
    )


def generate_batch_subscription_invoices(
    db: Session,
    *,
    law_firm_id: int,
    period_start: dt.date,
    period_end: dt.date,
    client_subscription_ids: list[int] | None = None,
    force_regenerate: bool = False,
    auto_send: bool = False,
    today: dt.date | None = None,
) -> BatchInvoiceGenerationResult:
    """
    One invoice per active subscription overlapping the period, generated sequentially.
    A failing subscription is reported in `errors` and does not stop the others.
    """
    today = today or dt.date.today()
    batch = BatchCollector(
        law_firm_id=law_firm_id, invoice_type=InvoiceType.SUBSCRIPTION.value, period_start=period_start, period_end=period_end
    )
    if period_end < period_start:
        return batch.abort(db, "Período de faturamento inválido")

    try:
        q = db.query(ClientSubscription.id, ClientSubscription.client_id).filter(
            ClientSubscription.law_firm_id == law_firm_id,
            ClientSubscription.status == SubscriptionStatus.ACTIVE,
            ClientSubscription.start_date <= period_end,
            or_(ClientSubscription.end_date.is_(None), ClientSubscription.end_date >= period_start),
        )
        if client_subscription_ids:
            q = q.filter(ClientSubscription.id.in_(client_subscription_ids))
        targets = q.order_by(ClientSubscription.id.asc()).all()
    except Exception:
        db.rollback()
        logger.exception("subscription_batch_lookup_failed: law_firm_id=%s", law_firm_id)
        return batch.abort(db, INTERNAL_ERROR_MESSAGE)

    for subscription_id, client_id in targets:
        result = generate_subscription_invoice(
            db,
            SubscriptionInvoiceRequest(
                law_firm_id=law_firm_id,
                client_subscription_id=subscription_id,
                billing_period_start=period_start,
                billing_period_end=period_end,
                force_regenerate=force_regenerate,
                auto_send=auto_send,
            ),
            today=today,
        )
        batch.add(client_id, result)

    return batch.finish(db)
