from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_law_firm, raise_for_failure
from app.db.session import get_db
from app.schemas.generation import PaymentPlanInvoiceCreate, PaymentPlanInvoiceRequest, RemainingInstallmentsRequest
from app.schemas.invoice import BatchInvoiceGenerationResult, InvoiceGenerationResult, PaymentPlanSummary
from app.services import payment_plan_invoices as payment_plan_service

router = APIRouter(dependencies=[Depends(get_law_firm)])


@router.post("/{payment_plan_id}/invoices", response_model=InvoiceGenerationResult, status_code=201)
def generate_installment_invoice(
    law_firm_id: int, payment_plan_id: int, payload: PaymentPlanInvoiceCreate, db: Session = Depends(get_db)
):
    request = PaymentPlanInvoiceRequest(law_firm_id=law_firm_id, payment_plan_id=payment_plan_id, **payload.model_dump())
    return raise_for_failure(payment_plan_service.generate_payment_plan_invoice(db, request))


@router.post("/{payment_plan_id}/invoices/remaining", response_model=BatchInvoiceGenerationResult)
def generate_remaining(
    law_firm_id: int, payment_plan_id: int, payload: RemainingInstallmentsRequest, db: Session = Depends(get_db)
):
    return payment_plan_service.generate_all_remaining_installments(
        db,
        law_firm_id=law_firm_id,
        payment_plan_id=payment_plan_id,
        start_from_installment=payload.start_from_installment,
        auto_send=payload.auto_send,
    )


@router.get("/{payment_plan_id}/summary", response_model=PaymentPlanSummary)
def get_summary(law_firm_id: int, payment_plan_id: int, db: Session = Depends(get_db)):
    # NotFoundError is turned into a 404 by the app-level handler
    return payment_plan_service.payment_plan_summary(db, law_firm_id=law_firm_id, payment_plan_id=payment_plan_id)
