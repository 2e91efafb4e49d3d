from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.discount import DiscountRule
from app.models.enums import DiscountScope, DiscountType
from app.services.money import ZERO, q_brl

logger = logging.getLogger(__name__)

# Rules after the highest-priority one only count for half.
SECONDARY_RULE_WEIGHT = Decimal("0.5")


@dataclass(frozen=True)
class AppliedDiscount:
    rule_id: int | None
    rule_name: str
    description: str
    discount_type: DiscountType
    value: Decimal
    amount: Decimal

    def as_record(self) -> dict:
        """JSON-safe form stored in invoices.applied_discounts."""
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "discount_type": self.discount_type.value,
            "value": str(self.value),
            "amount": str(self.amount),
        }


@dataclass
class DiscountResolution:
    base_amount: Decimal = ZERO
    total_discount: Decimal = ZERO
    final_amount: Decimal = ZERO
    applicable_discounts: list[AppliedDiscount] = field(default_factory=list)


def no_discount(base_amount: Decimal) -> DiscountResolution:
    base = q_brl(base_amount)
    return DiscountResolution(base_amount=base, total_discount=ZERO, final_amount=base)


def rule_discount_amount(rule: DiscountRule, base_amount: Decimal) -> Decimal:
    """Raw amount of a single rule against base_amount, capped by the rule's max_discount_amount."""
    value = Decimal(str(rule.value or 0))
    if rule.discount_type == DiscountType.PERCENTAGE:
        amount = base_amount * value / Decimal(100)
    else:
        amount = value
    if rule.max_discount_amount is not None and amount > rule.max_discount_amount:
        amount = Decimal(str(rule.max_discount_amount))
    return max(ZERO, amount)


def apply_discount_rules(rules: list[DiscountRule], base_amount: Decimal) -> DiscountResolution:
    """
    Highest priority first. The first rule applies in full, later ones at half weight.
    The total never exceeds the base amount.
    """
    base = q_brl(base_amount)
    resolution = no_discount(base)
    if base <= ZERO:
        return resolution

    ordered = sorted(rules, key=lambda r: (-(r.priority or 0), r.id or 0))
    total = ZERO
    for idx, rule in enumerate(ordered):
        amount = rule_discount_amount(rule, base)
        if idx > 0:
            amount = amount * SECONDARY_RULE_WEIGHT
        amount = min(q_brl(amount), base - total)
        if amount <= ZERO:
            continue
        total += amount
        resolution.applicable_discounts.append(
            AppliedDiscount(
                rule_id=rule.id,
                rule_name=rule.rule_name,
                description=rule.description or rule.rule_name,
                discount_type=rule.discount_type,
                value=Decimal(str(rule.value)),
                amount=amount,
            )
        )

    resolution.total_discount = q_brl(total)
    resolution.final_amount = q_brl(base - total)
    return resolution


def is_rule_applicable(
    rule: DiscountRule,
    *,
    client_id: int,
    matter_id: int | None,
    base_amount: Decimal,
    today: dt.date,
) -> bool:
    if rule.valid_from and rule.valid_from > today:
        return False
    if rule.valid_until and rule.valid_until < today:
        return False
    if rule.client_id is not None and rule.client_id != client_id:
        return False
    if rule.matter_id is not None and rule.matter_id != matter_id:
        return False
    if rule.minimum_amount is not None and base_amount < rule.minimum_amount:
        return False
    if rule.max_uses is not None and (rule.current_uses or 0) >= rule.max_uses:
        return False
    return True


def resolve_discounts(
    db: Session,
    *,
    law_firm_id: int,
    client_id: int,
    matter_id: int | None = None,
    base_amount: Decimal,
    scope: DiscountScope,
    today: dt.date | None = None,
) -> DiscountResolution:
    """
    Auto-applied rules matching scope, window, targeting, threshold and remaining uses.

    Usage counters of the applied rules are bumped in the caller's transaction.
    """
    today = today or dt.date.today()
    base = q_brl(base_amount)

    candidates = (
        db.query(DiscountRule)
        .filter(
            DiscountRule.law_firm_id == law_firm_id,
            DiscountRule.is_active.is_(True),
            DiscountRule.auto_apply.is_(True),
            DiscountRule.applies_to.in_([DiscountScope.ALL, scope]),
        )
        .order_by(DiscountRule.priority.desc(), DiscountRule.id.asc())
        .all()
    )
    rules = [
        r
        for r in candidates
        if is_rule_applicable(r, client_id=client_id, matter_id=matter_id, base_amount=base, today=today)
    ]
    resolution = apply_discount_rules(rules, base)

    applied_ids = {d.rule_id for d in resolution.applicable_discounts}
    for r in rules:
        if r.id in applied_ids:
            r.current_uses = (r.current_uses or 0) + 1
    return resolution


def resolve_discounts_or_none(db: Session, **kwargs) -> DiscountResolution:  # noqa: ANN003
    """resolve_discounts, but a failure means no discount instead of a failed invoice."""
    try:
        return resolve_discounts(db, **kwargs)
    except Exception:
        logger.exception(
            "discount_resolution_failed: law_firm_id=%s client_id=%s matter_id=%s",
            kwargs.get("law_firm_id"),
            kwargs.get("client_id"),
            kwargs.get("matter_id"),
        )
        db.rollback()
        return no_discount(kwargs.get("base_amount", ZERO))
