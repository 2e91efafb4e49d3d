from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_law_firm
from app.db.session import get_db
from app.models.enums import InvoiceStatus, InvoiceType
from app.models.invoice import Invoice
from app.schemas.invoice import InvoiceOut
from app.services.invoice_assembler import send_invoice

router = APIRouter(dependencies=[Depends(get_law_firm)])


def _get_invoice(db: Session, law_firm_id: int, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.law_firm_id == law_firm_id).first()
    if not invoice:
        raise HTTPException(status_code=404, detail="Fatura não encontrada")
    return invoice


@router.get("/", response_model=list[InvoiceOut])
def list_invoices(
    law_firm_id: int,
    invoice_type: InvoiceType | None = None,
    invoice_status: InvoiceStatus | None = None,
    client_id: int | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    q = db.query(Invoice).filter(Invoice.law_firm_id == law_firm_id)
    if invoice_type is not None:
        q = q.filter(Invoice.invoice_type == invoice_type)
    if invoice_status is not None:
        q = q.filter(Invoice.invoice_status == invoice_status)
    if client_id is not None:
        q = q.filter(Invoice.client_id == client_id)
    return q.order_by(Invoice.issue_date.desc(), Invoice.id.desc()).limit(limit).all()


@router.get("/{invoice_id}", response_model=InvoiceOut)
def get_invoice(law_firm_id: int, invoice_id: int, db: Session = Depends(get_db)):
    return _get_invoice(db, law_firm_id, invoice_id)


@router.post("/{invoice_id}/send", response_model=InvoiceOut)
def send(law_firm_id: int, invoice_id: int, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, law_firm_id, invoice_id)
    if not send_invoice(db, invoice):
        raise HTTPException(status_code=409, detail="Somente faturas em rascunho ou vencidas podem ser enviadas")
    return invoice
