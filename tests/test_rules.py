"""
Unit tests for the generic pricing rule engine
Tests: bundle rules, multi-member discounts, household cap, skipped rules, normalisation
"""

import pytest
from decimal import Decimal

from pricing.rules import apply_pricing_rules, normalize_rule_set, percent_of
from pricing.schemas import PlanKind, PricedItem, PricingRule, PricingRuleType


def item(plan_id, amount, kind=PlanKind.ADULT):
    return PricedItem(plan_id=plan_id, kind=kind, amount_pennies=amount)


def rule(rule_id, rule_type, **kwargs):
    return PricingRule(id=rule_id, rule_type=rule_type, **kwargs)


@pytest.fixture
def household_items():
    """Two adults and two juniors, base total 50000"""
    return [
        item("adult", 11500),
        item("adult", 11500),
        item("junior", 15600, PlanKind.JUNIOR),
        item("junior", 11400, PlanKind.JUNIOR),
    ]


class TestPercentOf:
    """Decimal percentage, half up"""

    def test_exact(self):
        assert percent_of(10000, Decimal("10")) == 1000

    def test_rounds_half_up(self):
        assert percent_of(1005, Decimal("10")) == 101  # 100.5
        assert percent_of(1004, Decimal("10")) == 100  # 100.4

    def test_fractional_percent(self):
        assert percent_of(9999, "12.5") == 1250  # 1249.875


class TestNoRules:
    """Base total passes through"""

    def test_empty(self, household_items):
        result = apply_pricing_rules(household_items, [])
        assert result.base_total_pennies == 50000
        assert result.final_total_pennies == 50000
        assert result.adjustment_pennies == 0
        assert result.applied == []

    def test_inactive_rules_ignored(self, household_items):
        rules = [rule("cap", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=100, is_active=False)]
        assert apply_pricing_rules(household_items, rules).final_total_pennies == 50000


class TestBundleRules:
    """First matching bundle replaces the total"""

    def test_bundle_match_short_circuits(self, household_items):
        rules = [
            rule("family", PricingRuleType.BUNDLE, bundle_price_pennies=40000,
                 bundle_adults_required=2, bundle_juniors_any=True),
            rule("disc", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=500),
            rule("cap", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=30000),
        ]
        result = apply_pricing_rules(household_items, rules)

        assert result.final_total_pennies == 40000
        assert result.adjustment_pennies == -10000
        assert [(a.rule_id, a.amount_pennies) for a in result.applied] == [("family", -10000)]
        assert {s.rule_id for s in result.skipped} == {"disc", "cap"}
        assert all(s.reason == "superseded by bundle rule family" for s in result.skipped)

    def test_priority_order(self, household_items):
        rules = [
            rule("late", PricingRuleType.BUNDLE, bundle_price_pennies=30000, priority=200),
            rule("early", PricingRuleType.BUNDLE, bundle_price_pennies=45000, priority=10),
        ]
        result = apply_pricing_rules(household_items, rules)
        assert result.applied[0].rule_id == "early"
        assert result.final_total_pennies == 45000

    def test_requirements_not_met(self, household_items):
        rules = [rule("big", PricingRuleType.BUNDLE, bundle_price_pennies=30000, bundle_adults_required=3)]
        result = apply_pricing_rules(household_items, rules)
        assert result.final_total_pennies == 50000
        assert result.applied == []
        assert result.skipped == []

    def test_juniors_required_count(self, household_items):
        two = rule("two", PricingRuleType.BUNDLE, bundle_price_pennies=30000, bundle_juniors_required=2)
        three = rule("three", PricingRuleType.BUNDLE, bundle_price_pennies=30000, bundle_juniors_required=3)
        assert apply_pricing_rules(household_items, [two]).final_total_pennies == 30000
        assert apply_pricing_rules(household_items, [three]).final_total_pennies == 50000

    def test_juniors_any_needs_one_junior(self):
        items = [item("adult", 11500), item("adult", 11500)]
        rules = [rule("b", PricingRuleType.BUNDLE, bundle_price_pennies=15000, bundle_juniors_any=True)]
        assert apply_pricing_rules(items, rules).final_total_pennies == 23000

    def test_bundle_without_price_skipped(self, household_items):
        rules = [rule("noprice", PricingRuleType.BUNDLE, bundle_adults_required=1)]
        result = apply_pricing_rules(household_items, rules)
        assert result.final_total_pennies == 50000
        assert result.skipped[0].rule_id == "noprice"
        assert result.skipped[0].reason == "bundle rule has no bundle price"


class TestMultiMemberDiscounts:
    """Discounts beyond the first fromN - 1 eligible items"""

    def test_flat_amount(self, household_items):
        rules = [rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=1000)]
        result = apply_pricing_rules(household_items, rules)
        # fromN = 2 -> 3 of 4 items discounted
        assert result.final_total_pennies == 47000
        assert result.applied[0].amount_pennies == -3000

    def test_min_quantity(self, household_items):
        rules = [rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=1000, min_quantity=4)]
        assert apply_pricing_rules(household_items, rules).final_total_pennies == 49000

    def test_plan_allowlist(self, household_items):
        rules = [rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=1000,
                      applies_to_plan_ids=["junior"])]
        assert apply_pricing_rules(household_items, rules).final_total_pennies == 49000

    def test_percentage_discounts_cheapest(self, household_items):
        rules = [rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_percent=Decimal("10"),
                      applies_to_plan_ids=["junior"])]
        result = apply_pricing_rules(household_items, rules)
        # one discountable junior -> the 11400 one
        assert result.applied[0].amount_pennies == -1140
        assert result.final_total_pennies == 48860

    def test_no_discountable_items_not_listed(self):
        rules = [rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=1000)]
        result = apply_pricing_rules([item("adult", 11500)], rules)
        assert result.final_total_pennies == 11500
        assert result.applied == []

    def test_discounts_stack(self, household_items):
        rules = [
            rule("d1", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=1000, priority=1),
            rule("d2", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_percent=Decimal("50"),
                 applies_to_plan_ids=["adult"], priority=2),
        ]
        result = apply_pricing_rules(household_items, rules)
        assert [a.rule_id for a in result.applied] == ["d1", "d2"]
        assert result.final_total_pennies == 50000 - 3000 - 5750

    def test_discount_never_below_zero(self):
        rules = [rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=10000)]
        result = apply_pricing_rules([item("a", 500), item("b", 500)], rules)
        assert result.final_total_pennies == 0
        assert result.applied[0].amount_pennies == -1000
        assert result.adjustment_pennies == -1000

    def test_unconfigured_discount_skipped(self, household_items):
        rules = [rule("empty", PricingRuleType.MULTI_MEMBER_DISCOUNT)]
        result = apply_pricing_rules(household_items, rules)
        assert result.final_total_pennies == 50000
        assert result.skipped[0].reason == "discount rule has no amount or percent"


class TestHouseholdCap:
    """Cap clamps the running total"""

    def test_cap_not_engaged_below_cap(self, household_items):
        rules = [
            rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=10000, priority=1),
            rule("cap", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=20000, priority=2),
        ]
        items = [item("a", 14000), item("b", 14000)]
        result = apply_pricing_rules(items, rules)
        # 28000 - 10000 = 18000 < 20000
        assert result.final_total_pennies == 18000
        assert [a.rule_id for a in result.applied] == ["d"]

    def test_cap_equals_cap_amount_when_exceeded(self, household_items):
        rules = [rule("cap", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=35000)]
        result = apply_pricing_rules(household_items, rules)
        assert result.final_total_pennies == 35000
        assert result.applied[0].amount_pennies == -15000
        assert result.adjustment_pennies == -15000

    def test_only_first_cap_applies(self, household_items):
        rules = [
            rule("cap-b", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=30000, priority=20),
            rule("cap-a", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=40000, priority=10),
        ]
        result = apply_pricing_rules(household_items, rules)
        assert result.final_total_pennies == 40000
        assert result.skipped[0].rule_id == "cap-b"
        assert result.skipped[0].reason == "only one household cap applies"

    def test_cap_without_amount_skipped(self, household_items):
        rules = [rule("cap", PricingRuleType.HOUSEHOLD_CAP)]
        result = apply_pricing_rules(household_items, rules)
        assert result.final_total_pennies == 50000
        assert result.skipped[0].reason == "household cap has no cap amount"


class TestNormalizeRuleSet:
    """Cap / bundle exclusivity"""

    def test_active_bundle_deactivates_caps(self):
        rules = [
            rule("cap", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=30000),
            rule("bundle", PricingRuleType.BUNDLE, bundle_price_pennies=40000),
            rule("disc", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=500),
        ]
        normalized = {r.id: r for r in normalize_rule_set(rules)}

        assert normalized["cap"].is_active is False
        assert normalized["cap"].is_exclusive
        assert normalized["bundle"].is_active
        assert normalized["bundle"].is_exclusive
        assert normalized["disc"].is_exclusive is False
        # input untouched
        assert rules[0].is_active

    def test_inactive_bundle_keeps_cap(self):
        rules = [
            rule("cap", PricingRuleType.HOUSEHOLD_CAP, cap_amount_pennies=30000),
            rule("bundle", PricingRuleType.BUNDLE, bundle_price_pennies=40000, is_active=False),
        ]
        normalized = normalize_rule_set(rules)
        assert normalized[0].is_active
        assert normalized[0].is_exclusive


class TestRuleValidation:
    """Money fields must be whole non-negative pennies"""

    def test_fractional_amount_rejected(self):
        with pytest.raises(Exception):
            rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_amount_pennies=10.5)

    def test_percent_out_of_range_rejected(self):
        with pytest.raises(Exception):
            rule("d", PricingRuleType.MULTI_MEMBER_DISCOUNT, discount_percent=150)
