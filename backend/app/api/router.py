from fastapi import APIRouter

from app.api.routes import case_invoices, invoices, payment_plans, subscription_invoices, tasks

api_router = APIRouter()

api_router.include_router(
    subscription_invoices.router, prefix="/firms/{law_firm_id}/subscription-invoices", tags=["subscription-invoices"]
)
api_router.include_router(case_invoices.router, prefix="/firms/{law_firm_id}/case-invoices", tags=["case-invoices"])
api_router.include_router(payment_plans.router, prefix="/firms/{law_firm_id}/payment-plans", tags=["payment-plans"])
api_router.include_router(invoices.router, prefix="/firms/{law_firm_id}/invoices", tags=["invoices"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
