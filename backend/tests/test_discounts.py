import datetime as dt
from decimal import Decimal

from app.models.discount import DiscountRule
from app.models.enums import DiscountScope, DiscountType
from app.services import discounts
from app.services.discounts import apply_discount_rules, is_rule_applicable, resolve_discounts, resolve_discounts_or_none


def _rule(rule_id, kind, value, priority=1, **kw):
    return DiscountRule(
        id=rule_id, rule_name=f"Regra {rule_id}", discount_type=kind, value=Decimal(value), priority=priority, **kw
    )


def test_no_rules_means_no_discount():
    r = apply_discount_rules([], Decimal("1000"))
    assert r.total_discount == Decimal("0.00")
    assert r.final_amount == Decimal("1000.00")
    assert r.applicable_discounts == []


def test_highest_priority_applies_in_full_then_half_weight():
    rules = [
        _rule(2, DiscountType.FIXED, "100", priority=1),
        _rule(1, DiscountType.PERCENTAGE, "10", priority=5),
    ]
    r = apply_discount_rules(rules, Decimal("1000"))
    assert [d.rule_id for d in r.applicable_discounts] == [1, 2]
    assert [d.amount for d in r.applicable_discounts] == [Decimal("100.00"), Decimal("50.00")]
    assert r.total_discount == Decimal("150.00")
    assert r.final_amount == Decimal("850.00")


def test_total_discount_never_exceeds_base():
    r = apply_discount_rules([_rule(1, DiscountType.FIXED, "2000")], Decimal("1000"))
    assert r.total_discount == Decimal("1000.00")
    assert r.final_amount == Decimal("0.00")


def test_max_discount_amount_caps_a_rule():
    rule = _rule(1, DiscountType.PERCENTAGE, "50", max_discount_amount=Decimal("200"))
    r = apply_discount_rules([rule], Decimal("1000"))
    assert r.total_discount == Decimal("200.00")


def test_applicability_window_target_threshold_and_uses():
    today = dt.date(2026, 3, 20)
    kw = dict(client_id=7, matter_id=None, base_amount=Decimal("500"), today=today)

    assert is_rule_applicable(_rule(1, DiscountType.FIXED, "10"), **kw)
    assert not is_rule_applicable(_rule(1, DiscountType.FIXED, "10", valid_from=dt.date(2026, 4, 1)), **kw)
    assert not is_rule_applicable(_rule(1, DiscountType.FIXED, "10", valid_until=dt.date(2026, 3, 1)), **kw)
    assert not is_rule_applicable(_rule(1, DiscountType.FIXED, "10", client_id=8), **kw)
    assert not is_rule_applicable(_rule(1, DiscountType.FIXED, "10", matter_id=3), **kw)
    assert not is_rule_applicable(_rule(1, DiscountType.FIXED, "10", minimum_amount=Decimal("501")), **kw)
    assert not is_rule_applicable(_rule(1, DiscountType.FIXED, "10", max_uses=2, current_uses=2), **kw)


def _stored_rule(db, firm, **kw):
    rule = DiscountRule(
        law_firm_id=firm.id,
        rule_name=kw.pop("rule_name", "Cliente fiel"),
        discount_type=kw.pop("discount_type", DiscountType.PERCENTAGE),
        value=kw.pop("value", Decimal("10")),
        **kw,
    )
    db.add(rule)
    db.commit()
    return rule


def test_resolve_filters_scope_and_counts_uses(db, firm, client):
    applied = _stored_rule(db, firm, applies_to=DiscountScope.SUBSCRIPTION)
    _stored_rule(db, firm, rule_name="Só casos", applies_to=DiscountScope.CASE_BILLING)
    _stored_rule(db, firm, rule_name="Inativa", is_active=False)
    _stored_rule(db, firm, rule_name="Manual", auto_apply=False)

    r = resolve_discounts(
        db,
        law_firm_id=firm.id,
        client_id=client.id,
        base_amount=Decimal("1000"),
        scope=DiscountScope.SUBSCRIPTION,
        today=dt.date(2026, 3, 20),
    )
    db.commit()

    assert [d.rule_name for d in r.applicable_discounts] == ["Cliente fiel"]
    assert r.total_discount == Decimal("100.00")
    db.refresh(applied)
    assert applied.current_uses == 1


def test_resolver_failure_falls_back_to_no_discount(db, firm, client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("lookup failed")

    monkeypatch.setattr(discounts, "resolve_discounts", boom)
    r = resolve_discounts_or_none(
        db,
        law_firm_id=firm.id,
        client_id=client.id,
        base_amount=Decimal("1000"),
        scope=DiscountScope.ALL,
    )
    assert r.total_discount == Decimal("0.00")
    assert r.final_amount == Decimal("1000.00")
