from __future__ import annotations


class InvoiceGenerationError(RuntimeError):
    """Generation aborted for a single target. The message is user-facing (pt-BR)."""

    error_code = "invalid"
    status_code = 400


class NotFoundError(InvoiceGenerationError):
    error_code = "not_found"
    status_code = 404


class DuplicateInvoiceError(InvoiceGenerationError):
    error_code = "duplicate"
    status_code = 409


class InvalidRequestError(InvoiceGenerationError):
    error_code = "invalid"
    status_code = 400


INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"
INTERNAL_ERROR_CODE = "internal"
