from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_law_firm, raise_for_failure
from app.db.session import get_db
from app.schemas.generation import BatchSubscriptionInvoiceRequest, SubscriptionInvoiceCreate, SubscriptionInvoiceRequest
from app.schemas.invoice import BatchInvoiceGenerationResult, InvoiceGenerationResult
from app.services import subscription_invoices as subscription_invoice_service

router = APIRouter(dependencies=[Depends(get_law_firm)])


@router.post("/", response_model=InvoiceGenerationResult, status_code=201)
def generate_subscription_invoice(law_firm_id: int, payload: SubscriptionInvoiceCreate, db: Session = Depends(get_db)):
    request = SubscriptionInvoiceRequest(law_firm_id=law_firm_id, **payload.model_dump())
    return raise_for_failure(subscription_invoice_service.generate_subscription_invoice(db, request))


@router.post("/batch", response_model=BatchInvoiceGenerationResult)
def generate_batch(law_firm_id: int, payload: BatchSubscriptionInvoiceRequest, db: Session = Depends(get_db)):
    return subscription_invoice_service.generate_batch_subscription_invoices(
        db,
        law_firm_id=law_firm_id,
        period_start=payload.billing_period_start,
        period_end=payload.billing_period_end,
        client_subscription_ids=payload.client_subscription_ids,
        force_regenerate=payload.force_regenerate,
        auto_send=payload.auto_send,
    )
