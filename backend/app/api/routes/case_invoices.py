from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_law_firm, raise_for_failure
from app.db.session import get_db
from app.schemas.generation import BatchCaseInvoiceRequest, CaseInvoiceCreate, CaseInvoiceRequest
from app.schemas.invoice import BatchInvoiceGenerationResult, InvoiceGenerationResult
from app.services import case_invoices as case_invoice_service

router = APIRouter(dependencies=[Depends(get_law_firm)])


@router.post("/", response_model=InvoiceGenerationResult, status_code=201)
def generate_case_invoice(law_firm_id: int, payload: CaseInvoiceCreate, db: Session = Depends(get_db)):
    request = CaseInvoiceRequest(law_firm_id=law_firm_id, **payload.model_dump())
    return raise_for_failure(case_invoice_service.generate_case_invoice(db, request))


@router.post("/batch", response_model=BatchInvoiceGenerationResult)
def generate_batch(law_firm_id: int, payload: BatchCaseInvoiceRequest, db: Session = Depends(get_db)):
    return case_invoice_service.generate_batch_case_invoices(
        db,
        law_firm_id=law_firm_id,
        matter_ids=payload.matter_ids,
        billing_period_start=payload.billing_period_start,
        billing_period_end=payload.billing_period_end,
        include_time_entries=payload.include_time_entries,
        include_expenses=payload.include_expenses,
        auto_send=payload.auto_send,
    )
