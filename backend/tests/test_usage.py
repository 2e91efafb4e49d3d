import datetime as dt
from decimal import Decimal

from app.models.enums import BillingCycle, TimeEntryType
from app.models.subscription import ClientSubscription, ServiceInclusion, SubscriptionPlan
from app.models.time_entry import TimeEntry
from app.services.usage import (
    calculate_subscription_usage,
    measure_service_usage,
    minutes_to_whole_hours,
    summarize_usage,
)


def _inclusion(service_type, included, rate, unit="consultas"):
    return ServiceInclusion(service_type=service_type, quantity_included=included, overage_rate=Decimal(rate), unit=unit)


def test_overage_is_used_minus_included():
    """10 included, 14 used at R$ 100 -> 4 over, R$ 400."""
    usage = summarize_usage([_inclusion("legal_consultation", 10, "100")], {"legal_consultation": 14})
    assert usage.services_used["legal_consultation"] == {"included": 10, "used": 14, "overage": 4, "unit": "consultas"}
    assert usage.overage_charges == Decimal("400.00")


def test_included_snapshot_carries_only_the_allowance():
    usage = summarize_usage([_inclusion("legal_consultation", 10, "100")], {"legal_consultation": 14})
    assert usage.services_included["legal_consultation"] == {"included": 10, "unit": "consultas"}


def test_usage_within_allowance_has_no_overage():
    usage = summarize_usage([_inclusion("document_review", 5, "80")], {"document_review": 3})
    assert usage.services_used["document_review"]["overage"] == 0
    assert usage.overage_charges == Decimal("0.00")


def test_service_without_entries_reports_zero():
    usage = summarize_usage([_inclusion("contract_analysis", 2, "150")], {})
    assert usage.services_used["contract_analysis"]["used"] == 0
    assert usage.services_used["contract_analysis"]["overage"] == 0


def test_minutes_round_up_to_whole_hours():
    assert minutes_to_whole_hours(0) == 0
    assert minutes_to_whole_hours(1) == 1
    assert minutes_to_whole_hours(60) == 1
    assert minutes_to_whole_hours(61) == 2


def _subscription(db, firm, client):
    plan = SubscriptionPlan(
        law_firm_id=firm.id, plan_name="Empresarial", monthly_fee=Decimal("1000"), billing_cycle=BillingCycle.MONTHLY
    )
    plan.service_inclusions = [
        _inclusion("legal_consultation", 10, "100"),
        _inclusion("legal_research", 2, "250", unit="horas"),
    ]
    db.add(plan)
    db.flush()
    sub = ClientSubscription(
        law_firm_id=firm.id, client_id=client.id, subscription_plan_id=plan.id, start_date=dt.date(2025, 1, 1)
    )
    db.add(sub)
    db.commit()
    return sub


def _work(db, sub, *, day, category, minutes=30, entry_type=TimeEntryType.SUBSCRIPTION_WORK):
    db.add(
        TimeEntry(
            law_firm_id=sub.law_firm_id,
            client_subscription_id=sub.id,
            entry_type=entry_type,
            entry_date=day,
            task_category=category,
            activity_description="Atendimento",
            effective_minutes=minutes,
        )
    )


def test_consultations_are_counted_in_period(db, firm, client):
    sub = _subscription(db, firm, client)
    for day in (1, 5, 31):
        _work(db, sub, day=dt.date(2026, 1, day), category="Consultation")
    _work(db, sub, day=dt.date(2026, 2, 1), category="Consultation")
    _work(db, sub, day=dt.date(2026, 1, 7), category="Consultation", entry_type=TimeEntryType.ADMINISTRATIVE)
    db.commit()

    used = measure_service_usage(
        db,
        subscription_id=sub.id,
        service_type="legal_consultation",
        period_start=dt.date(2026, 1, 1),
        period_end=dt.date(2026, 1, 31),
    )
    assert used == 3


def test_research_minutes_become_whole_hours(db, firm, client):
    sub = _subscription(db, firm, client)
    _work(db, sub, day=dt.date(2026, 1, 3), category="Legal Research", minutes=100)
    _work(db, sub, day=dt.date(2026, 1, 4), category="Legal Research", minutes=90)
    db.commit()

    usage = calculate_subscription_usage(db, sub, period_start=dt.date(2026, 1, 1), period_end=dt.date(2026, 1, 31))
    # 190 minutes -> 4 hours, 2 included
    assert usage.services_used["legal_research"]["used"] == 4
    assert usage.services_used["legal_research"]["overage"] == 2
    assert usage.overage_charges == Decimal("500.00")
