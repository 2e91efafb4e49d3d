from app.models.case_billing import CaseBilling, CaseExpense, CaseOutcome
from app.models.discount import DiscountRule
from app.models.firm import Client, LawFirm, Matter
from app.models.generation_log import InvoiceGenerationLog
from app.models.invoice import CaseInvoice, Invoice, InvoiceLineItem, PaymentPlanInvoice, SubscriptionInvoice
from app.models.payment_plan import PaymentPlan
from app.models.subscription import ClientSubscription, ServiceInclusion, SubscriptionPlan
from app.models.time_entry import TimeEntry

__all__ = [
    "CaseBilling",
    "CaseExpense",
    "CaseInvoice",
    "CaseOutcome",
    "Client",
    "ClientSubscription",
    "DiscountRule",
    "Invoice",
    "InvoiceGenerationLog",
    "InvoiceLineItem",
    "LawFirm",
    "Matter",
    "PaymentPlan",
    "PaymentPlanInvoice",
    "ServiceInclusion",
    "SubscriptionInvoice",
    "SubscriptionPlan",
    "TimeEntry",
]
