from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from app.core.config import settings
from app.models.invoice import Invoice
from app.services.money import format_brl

logger = logging.getLogger(__name__)


def send_email(*, subject: str, body: str, recipients: list[str]) -> None:
    """
    MVP email sending:
    - If SMTP is not configured, we log the message instead of sending.
    """
    if not recipients:
        return

    if not settings.smtp_host or not settings.smtp_from:
        logger.info("email_dry_run: to=%s subject=%s body=%s", recipients, subject, body)
        return

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = ", ".join(recipients)
    msg.set_content(body)

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as s:
        s.starttls()
        if settings.smtp_username and settings.smtp_password:
            s.login(settings.smtp_username, settings.smtp_password)
        s.send_message(msg)


def send_invoice_email(invoice: Invoice) -> None:
    client = invoice.client
    if client is None or not client.email:
        logger.info("invoice_email_skipped: invoice_id=%s reason=no_client_email", invoice.id)
        return

    subject = f"Fatura {invoice.invoice_number}"
    body = (
        f"Olá, {client.name}.\n\n"
        f"Segue a fatura {invoice.invoice_number}"
        f"{' - ' + invoice.description if invoice.description else ''}.\n"
        f"Valor total: {format_brl(invoice.total_amount)}\n"
        f"Vencimento: {invoice.due_date:%d/%m/%Y}\n"
    )
    send_email(subject=subject, body=body, recipients=[client.email])
