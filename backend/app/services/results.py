"""Turning generation outcomes (invoices or domain errors) into result objects."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from collections.abc import Callable

from sqlalchemy.orm import Session

from app.models.enums import GenerationLogStatus, GenerationType
from app.models.invoice import Invoice
from app.schemas.invoice import BatchError, BatchInvoiceGenerationResult, InvoiceGenerationResult, InvoiceOut
from app.services.errors import INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, InvoiceGenerationError
from app.services.generation_log import log_generation
from app.services.invoice_assembler import send_invoice

logger = logging.getLogger(__name__)

AUTO_SEND_FAILED_WARNING = "Fatura gerada, mas não foi possível enviá-la ao cliente"


def invoice_succeeded(invoice: Invoice, warnings: list[str] | None = None) -> InvoiceGenerationResult:
    return InvoiceGenerationResult(success=True, invoice=InvoiceOut.model_validate(invoice), warnings=list(warnings or []))


def invoice_failed(error: str, error_code: str) -> InvoiceGenerationResult:
    return InvoiceGenerationResult(success=False, error=error, error_code=error_code)


def run_generation(
    db: Session, generate: Callable[[], InvoiceGenerationResult], *, kind: str, target_id: int
) -> InvoiceGenerationResult:
    """
    Domain errors become failed results with their message; anything else rolls back
    and becomes the generic internal error.
    """
    try:
        return generate()
    except InvoiceGenerationError as e:
        logger.info("invoice_generation_rejected: kind=%s target_id=%s code=%s error=%s", kind, target_id, e.error_code, e)
        return invoice_failed(str(e), e.error_code)
    except Exception:
        db.rollback()
        logger.exception("invoice_generation_failed: kind=%s target_id=%s", kind, target_id)
        return invoice_failed(INTERNAL_ERROR_MESSAGE, INTERNAL_ERROR_CODE)


def auto_send_invoice(db: Session, invoice: Invoice, warnings: list[str], *, today: dt.date) -> None:
    try:
        send_invoice(db, invoice, today=today)
    except Exception:
        db.rollback()
        logger.exception("invoice_auto_send_failed: invoice_id=%s", invoice.id)
        warnings.append(AUTO_SEND_FAILED_WARNING)


class BatchCollector:
    """Accumulates per-target results of one sequential batch run."""

    def __init__(self, *, law_firm_id: int, invoice_type: str, period_start: dt.date | None = None,
                 period_end: dt.date | None = None) -> None:
        self.law_firm_id = law_firm_id
        self.invoice_type = invoice_type
        self.period_start = period_start
        self.period_end = period_end
        self.batch_id = uuid.uuid4()
        self.started_at = dt.datetime.now(dt.timezone.utc)
        self.invoices: list[InvoiceOut] = []
        self.errors: list[BatchError] = []
        self.total_requested = 0

    def add(self, client_id: int | None, result: InvoiceGenerationResult, *, label: str | None = None) -> None:
        self.total_requested += 1
        if result.success and result.invoice is not None:
            self.invoices.append(result.invoice)
            return
        error = result.error or INTERNAL_ERROR_MESSAGE
        self.errors.append(BatchError(client_id=client_id, error=f"{label}: {error}" if label else error))

    def finish(self, db: Session, *, generation_type: GenerationType = GenerationType.BATCH) -> BatchInvoiceGenerationResult:
        log_generation(
            db,
            law_firm_id=self.law_firm_id,
            invoice_type=self.invoice_type,
            batch_id=self.batch_id,
            total_requested=self.total_requested,
            successful=len(self.invoices),
            failed=len(self.errors),
            invoice_ids=[i.id for i in self.invoices],
            errors=[e.model_dump() for e in self.errors],
            generation_type=generation_type,
            period_start=self.period_start,
            period_end=self.period_end,
            started_at=self.started_at,
        )
        return BatchInvoiceGenerationResult(
            success=True,
            total_requested=self.total_requested,
            successful_generations=len(self.invoices),
            failed_generations=len(self.errors),
            invoices=self.invoices,
            errors=self.errors,
            batch_id=self.batch_id,
        )

    def abort(self, db: Session, error: str, *, generation_type: GenerationType = GenerationType.BATCH) -> BatchInvoiceGenerationResult:
        """The run could not start (target lookup failed). Logged as a failed batch with a system error."""
        system_error = BatchError(client_id=None, error=error)
        log_generation(
            db,
            law_firm_id=self.law_firm_id,
            invoice_type=self.invoice_type,
            batch_id=self.batch_id,
            total_requested=0,
            successful=0,
            failed=0,
            invoice_ids=[],
            errors=[system_error.model_dump()],
            generation_type=generation_type,
            status=GenerationLogStatus.FAILED,
            period_start=self.period_start,
            period_end=self.period_end,
            started_at=self.started_at,
        )
        return BatchInvoiceGenerationResult(success=False, errors=[system_error], batch_id=self.batch_id)
