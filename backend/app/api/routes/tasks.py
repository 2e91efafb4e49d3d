from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_tasks_token
from app.db.session import get_db
from app.models.firm import LawFirm
from app.schemas.generation import OverdueInstallmentsRequest
from app.schemas.invoice import BatchInvoiceGenerationResult
from app.services.payment_plan_invoices import generate_overdue_installments

router = APIRouter(dependencies=[Depends(require_tasks_token)])


@router.post("/overdue-installments", response_model=list[BatchInvoiceGenerationResult])
def overdue_installments(payload: OverdueInstallmentsRequest, db: Session = Depends(get_db)):
    if payload.law_firm_id is not None:
        firm_ids = [payload.law_firm_id]
    else:
        firm_ids = [fid for (fid,) in db.query(LawFirm.id).order_by(LawFirm.id.asc()).all()]
    return [
        generate_overdue_installments(db, law_firm_id=fid, grace_period_days=payload.grace_period_days)
        for fid in firm_ids
    ]
