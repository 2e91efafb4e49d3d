import datetime as dt
from decimal import Decimal

from app.services.proration import (
    REASON_ENDED_MID_PERIOD,
    REASON_STARTED_AND_ENDED_MID_PERIOD,
    REASON_STARTED_MID_PERIOD,
    calculate_proration,
)

JAN_START = dt.date(2026, 1, 1)
JAN_END = dt.date(2026, 1, 31)


def test_subscription_covering_period_is_not_prorated():
    p = calculate_proration(
        subscription_start=dt.date(2025, 6, 1), subscription_end=None, period_start=JAN_START, period_end=JAN_END
    )
    assert p.is_prorated is False
    assert p.proration_factor == Decimal("1")
    assert p.proration_reason is None


def test_subscription_exactly_bounding_period_is_not_prorated():
    p = calculate_proration(
        subscription_start=JAN_START, subscription_end=JAN_END, period_start=JAN_START, period_end=JAN_END
    )
    assert p.is_prorated is False
    assert p.proration_factor == Decimal("1")


def test_started_mid_period():
    """Jan 16 -> Jan 31 is 15 of 30 days."""
    p = calculate_proration(
        subscription_start=dt.date(2026, 1, 16), subscription_end=None, period_start=JAN_START, period_end=JAN_END
    )
    assert p.is_prorated is True
    assert p.proration_factor == Decimal("0.5")
    assert p.proration_reason == REASON_STARTED_MID_PERIOD


def test_ended_mid_period():
    """Jan 1 -> Jan 10 is 9 of 30 days."""
    p = calculate_proration(
        subscription_start=dt.date(2025, 1, 1),
        subscription_end=dt.date(2026, 1, 10),
        period_start=JAN_START,
        period_end=JAN_END,
    )
    assert p.is_prorated is True
    assert p.proration_factor == Decimal("0.300000")
    assert p.proration_reason == REASON_ENDED_MID_PERIOD


def test_started_and_ended_mid_period_bills_the_overlap():
    """Jan 11 -> Jan 21 is 10 of 30 days."""
    p = calculate_proration(
        subscription_start=dt.date(2026, 1, 11),
        subscription_end=dt.date(2026, 1, 21),
        period_start=JAN_START,
        period_end=JAN_END,
    )
    assert p.is_prorated is True
    assert p.proration_factor == Decimal("0.333333")
    assert p.proration_reason == REASON_STARTED_AND_ENDED_MID_PERIOD


def test_factor_is_clamped_to_unit_interval():
    p = calculate_proration(
        subscription_start=dt.date(2026, 2, 15), subscription_end=None, period_start=JAN_START, period_end=JAN_END
    )
    assert Decimal("0") <= p.proration_factor <= Decimal("1")
