from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.firm import LawFirm
from app.schemas.invoice import InvoiceGenerationResult
from app.services.errors import INTERNAL_ERROR_CODE

_STATUS_BY_ERROR_CODE = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "invalid": status.HTTP_400_BAD_REQUEST,
    INTERNAL_ERROR_CODE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_law_firm(law_firm_id: int, db: Session = Depends(get_db)) -> LawFirm:
    firm = db.query(LawFirm).filter(LawFirm.id == law_firm_id).first()
    if not firm:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Escritório não encontrado")
    return firm


def require_tasks_token(x_tasks_token: str | None = Header(default=None)) -> None:
    if x_tasks_token != settings.tasks_daily_secret:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid tasks token")


def raise_for_failure(result: InvoiceGenerationResult) -> InvoiceGenerationResult:
    """Failed single generations become HTTP errors carrying the user-facing message."""
    if result.success:
        return result
    code = _STATUS_BY_ERROR_CODE.get(result.error_code or "", status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail=result.error)
