from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.enums import TimeEntryType
from app.models.subscription import ClientSubscription, ServiceInclusion
from app.models.time_entry import TimeEntry
from app.services.money import ZERO, q_brl

# Services measured as a count of matching time entries.
COUNTED_SERVICES: dict[str, str] = {
    "legal_consultation": "Consultation",
    "document_review": "Document Review",
    "contract_analysis": "Contract Analysis",
}
LEGAL_RESEARCH = "legal_research"
LEGAL_RESEARCH_CATEGORY = "Legal Research"

SERVICE_TYPE_NAMES: dict[str, str] = {
    "legal_consultation": "Consulta Jurídica",
    "document_review": "Revisão de Documento",
    "contract_analysis": "Análise de Contrato",
    "legal_research": "Pesquisa Jurídica",
    "court_representation": "Representação em Tribunal",
    "legal_writing": "Redação Jurídica",
}


@dataclass
class SubscriptionUsage:
    services_included: dict[str, dict] = field(default_factory=dict)
    services_used: dict[str, dict] = field(default_factory=dict)
    overage_charges: Decimal = ZERO
    overage_rates: dict[str, Decimal] = field(default_factory=dict)


def service_type_name(service_type: str) -> str:
    return SERVICE_TYPE_NAMES.get(service_type, service_type)


def minutes_to_whole_hours(total_minutes: int) -> int:
    return math.ceil(total_minutes / 60)


def _subscription_work(db: Session, subscription_id: int, period_start: dt.date, period_end: dt.date):
    return db.query(TimeEntry).filter(
        TimeEntry.client_subscription_id == subscription_id,
        TimeEntry.entry_type == TimeEntryType.SUBSCRIPTION_WORK,
        TimeEntry.entry_date >= period_start,
        TimeEntry.entry_date <= period_end,
    )


def measure_service_usage(
    db: Session, *, subscription_id: int, service_type: str, period_start: dt.date, period_end: dt.date
) -> int:
    """Units of `service_type` consumed in the inclusive period."""
    q = _subscription_work(db, subscription_id, period_start, period_end)

    if service_type in COUNTED_SERVICES:
        return q.filter(TimeEntry.task_category == COUNTED_SERVICES[service_type]).count()

    if service_type == LEGAL_RESEARCH:
        q = q.filter(TimeEntry.task_category == LEGAL_RESEARCH_CATEGORY)
    else:
        q = q.filter(TimeEntry.subscription_service_type == service_type)

    total_minutes = q.with_entities(func.coalesce(func.sum(TimeEntry.effective_minutes), 0)).scalar()
    return minutes_to_whole_hours(int(total_minutes or 0))


def summarize_usage(inclusions: list[ServiceInclusion], used_by_service: dict[str, int]) -> SubscriptionUsage:
    """Compare measured usage with plan inclusions; overage = max(0, used - included)."""
    usage = SubscriptionUsage()
    overage_total = ZERO
    for inc in inclusions:
        included = int(inc.quantity_included or 0)
        used = int(used_by_service.get(inc.service_type, 0))
        overage = max(0, used - included)
        rate = q_brl(inc.overage_rate)

        usage.services_included[inc.service_type] = {"included": included, "unit": inc.unit}
        usage.services_used[inc.service_type] = {"included": included, "used": used, "overage": overage, "unit": inc.unit}
        usage.overage_rates[inc.service_type] = rate
        overage_total += Decimal(overage) * rate

    usage.overage_charges = q_brl(overage_total)
    return usage


def calculate_subscription_usage(
    db: Session, subscription: ClientSubscription, *, period_start: dt.date, period_end: dt.date
) -> SubscriptionUsage:
    inclusions = list(subscription.plan.service_inclusions)
    used = {
        inc.service_type: measure_service_usage(
            db,
            subscription_id=subscription.id,
            service_type=inc.service_type,
            period_start=period_start,
            period_end=period_end,
        )
        for inc in inclusions
    }
    return summarize_usage(inclusions, used)
