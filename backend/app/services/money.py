from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")


def q_brl(x: Decimal | int | float | str | None) -> Decimal:
    if x is None:
        return ZERO
    return Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def q_hours(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def minutes_to_hours(minutes: int | Decimal) -> Decimal:
    return Decimal(minutes) / Decimal(60)


def format_brl(amount: Decimal | int | float) -> str:
    """pt-BR currency rendering: 1234.5 -> 'R$ 1.234,50'."""
    value = q_brl(amount)
    sign = "-" if value < 0 else ""
    integer, _, cents = f"{abs(value):.2f}".partition(".")
    grouped = f"{int(integer):,}".replace(",", ".")
    return f"{sign}R$ {grouped},{cents}"
