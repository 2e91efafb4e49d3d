from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

REASON_STARTED_MID_PERIOD = "Assinatura iniciada no meio do período"
REASON_ENDED_MID_PERIOD = "Assinatura encerrada no meio do período"
REASON_STARTED_AND_ENDED_MID_PERIOD = "Assinatura iniciada e encerrada no meio do período"

ONE = Decimal("1")


@dataclass(frozen=True)
class Proration:
    is_prorated: bool
    proration_factor: Decimal
    proration_reason: str | None = None


def _q_factor(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP)


def _clamp(x: Decimal) -> Decimal:
    return max(Decimal("0"), min(ONE, x))


def calculate_proration(
    *,
    subscription_start: dt.date,
    subscription_end: dt.date | None,
    period_start: dt.date,
    period_end: dt.date,
) -> Proration:
    """
    Share of the billing period the subscription was active for, in whole days.

    - Started after period_start: billed (period_end - subscription_start) / (period_end - period_start).
    - Ended before period_end: billed (subscription_end - period_start) / (period_end - period_start).
    - Both: billed days are the overlap (subscription_end - subscription_start).
    A subscription exactly covering the period is not prorated (factor 1).
    """
    total_days = (period_end - period_start).days
    starts_late = subscription_start > period_start
    ends_early = subscription_end is not None and subscription_end < period_end

    if not starts_late and not ends_early:
        return Proration(is_prorated=False, proration_factor=ONE)
    if total_days <= 0:
        # Single-day period: either the subscription covers it or it does not.
        return Proration(is_prorated=False, proration_factor=ONE)

    billed_from = subscription_start if starts_late else period_start
    billed_to = subscription_end if ends_early else period_end
    billed_days = (billed_to - billed_from).days

    if starts_late and ends_early:
        reason = REASON_STARTED_AND_ENDED_MID_PERIOD
    elif starts_late:
        reason = REASON_STARTED_MID_PERIOD
    else:
        reason = REASON_ENDED_MID_PERIOD

    factor = _clamp(_q_factor(Decimal(billed_days) / Decimal(total_days)))
    return Proration(is_prorated=True, proration_factor=factor, proration_reason=reason)
