"""Audit rows for batch invoice generation runs."""

from __future__ import annotations

import datetime as dt
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.enums import GenerationLogStatus, GenerationType
from app.models.generation_log import InvoiceGenerationLog

logger = logging.getLogger(__name__)


def log_generation(
    db: Session,
    *,
    law_firm_id: int,
    invoice_type: str,
    batch_id: uuid.UUID,
    total_requested: int,
    successful: int,
    failed: int,
    invoice_ids: list[int],
    errors: list[dict],
    generation_type: GenerationType = GenerationType.BATCH,
    status: GenerationLogStatus = GenerationLogStatus.COMPLETED,
    period_start: dt.date | None = None,
    period_end: dt.date | None = None,
    started_at: dt.datetime | None = None,
) -> InvoiceGenerationLog | None:
    """
    One row per batch run. A failure to write the log never fails the batch itself.
    """
    entry = InvoiceGenerationLog(
        law_firm_id=law_firm_id,
        generation_type=generation_type,
        invoice_type=invoice_type,
        batch_id=batch_id,
        total_invoices_generated=total_requested,
        successful_generations=successful,
        failed_generations=failed,
        period_start=period_start,
        period_end=period_end,
        generated_invoice_ids=list(invoice_ids),
        error_messages=[dict(e) for e in errors],
        status=status,
        started_at=started_at or dt.datetime.now(dt.timezone.utc),
        completed_at=dt.datetime.now(dt.timezone.utc),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("generation_log_failed: batch_id=%s invoice_type=%s", batch_id, invoice_type)
        return None
    db.refresh(entry)
    logger.info(
        "invoice_batch_completed: batch_id=%s invoice_type=%s requested=%d ok=%d failed=%d",
        batch_id,
        invoice_type,
        total_requested,
        successful,
        failed,
    )
    return entry
