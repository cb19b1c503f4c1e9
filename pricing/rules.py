"""
Generic pricing rule engine

Applies club-configured rules to a flat list of priced plan items.
Fixed order:
1. bundle rules - first match by priority replaces the total, nothing else runs
2. multi-member discounts - flat amount or percentage, stacking
3. household cap - first active cap clamps the running total

Rules that cannot be applied because they are misconfigured are returned in
`skipped` instead of being dropped silently.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Sequence, Union

from loguru import logger

from .schemas import (
    AppliedRule,
    PlanKind,
    PricedItem,
    PricingRule,
    PricingRuleType,
    RulePricingResult,
    SkippedRule,
)


def percent_of(amount_pennies: int, percent: Union[Decimal, int, str]) -> int:
    """amount * percent / 100, rounded half up to whole pennies"""
    value = Decimal(amount_pennies) * Decimal(percent) / Decimal(100)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _skip(rule: PricingRule, reason: str) -> SkippedRule:
    logger.warning(f"Pricing rule {rule.id} ({rule.rule_type.value}) skipped: {reason}")
    return SkippedRule(rule_id=rule.id, rule_type=rule.rule_type, reason=reason)


def _bundle_matches(rule: PricingRule, adult_count: int, junior_count: int) -> bool:
    adults_required = rule.bundle_adults_required or 0
    juniors_required = rule.bundle_juniors_required or 0

    match_adults = adults_required == 0 or adult_count >= adults_required
    if rule.bundle_juniors_any:
        match_juniors = junior_count >= 1
    else:
        match_juniors = juniors_required == 0 or junior_count >= juniors_required
    return match_adults and match_juniors


def _multi_member_discount(rule: PricingRule, items: Sequence[PricedItem]) -> int:
    """Discount in pennies for one multi-member rule (0 when nothing qualifies)"""
    if rule.applies_to_plan_ids is None:
        eligible = list(items)
    else:
        allowed = set(rule.applies_to_plan_ids)
        eligible = [i for i in items if i.plan_id in allowed]

    from_n = max(2, rule.min_quantity or 2)
    discountable = max(0, len(eligible) - (from_n - 1))
    if discountable == 0:
        return 0

    if rule.discount_amount_pennies:
        return rule.discount_amount_pennies * discountable

    # cheapest items first
    cheapest = sorted(eligible, key=lambda i: i.amount_pennies)[:discountable]
    return sum(percent_of(i.amount_pennies, rule.discount_percent) for i in cheapest)


def apply_pricing_rules(
    items: Sequence[PricedItem],
    rules: Sequence[PricingRule],
) -> RulePricingResult:
    base_total = sum(i.amount_pennies for i in items)
    running_total = base_total
    applied: List[AppliedRule] = []
    skipped: List[SkippedRule] = []

    active = sorted((r for r in rules if r.is_active), key=lambda r: r.priority)

    # ---- bundles ----
    adult_count = sum(1 for i in items if i.kind == PlanKind.ADULT)
    junior_count = sum(1 for i in items if i.kind == PlanKind.JUNIOR)

    for rule in (r for r in active if r.rule_type == PricingRuleType.BUNDLE):
        if not rule.bundle_price_pennies:
            skipped.append(_skip(rule, "bundle rule has no bundle price"))
            continue
        if not _bundle_matches(rule, adult_count, junior_count):
            continue

        final_total = rule.bundle_price_pennies
        applied.append(AppliedRule(
            rule_id=rule.id,
            rule_type=rule.rule_type,
            amount_pennies=final_total - base_total,
        ))
        for other in active:
            if other is not rule and other.rule_type != PricingRuleType.BUNDLE:
                skipped.append(SkippedRule(
                    rule_id=other.id,
                    rule_type=other.rule_type,
                    reason=f"superseded by bundle rule {rule.id}",
                ))
        logger.debug(f"Bundle rule {rule.id} matched: {base_total} -> {final_total}")
        return RulePricingResult(
            base_total_pennies=base_total,
            final_total_pennies=final_total,
            adjustment_pennies=final_total - base_total,
            applied=applied,
            skipped=skipped,
        )

    # ---- multi-member discounts ----
    for rule in (r for r in active if r.rule_type == PricingRuleType.MULTI_MEMBER_DISCOUNT):
        if not rule.discount_amount_pennies and not rule.discount_percent:
            skipped.append(_skip(rule, "discount rule has no amount or percent"))
            continue

        discount = min(_multi_member_discount(rule, items), running_total)
        if discount <= 0:
            continue

        running_total -= discount
        applied.append(AppliedRule(
            rule_id=rule.id,
            rule_type=rule.rule_type,
            amount_pennies=-discount,
        ))

    # ---- household cap ----
    cap_applied = False
    for rule in (r for r in active if r.rule_type == PricingRuleType.HOUSEHOLD_CAP):
        if not rule.cap_amount_pennies:
            skipped.append(_skip(rule, "household cap has no cap amount"))
            continue
        if cap_applied:
            skipped.append(SkippedRule(
                rule_id=rule.id,
                rule_type=rule.rule_type,
                reason="only one household cap applies",
            ))
            continue

        cap_applied = True
        if running_total > rule.cap_amount_pennies:
            applied.append(AppliedRule(
                rule_id=rule.id,
                rule_type=rule.rule_type,
                amount_pennies=rule.cap_amount_pennies - running_total,
            ))
            running_total = rule.cap_amount_pennies

    final_total = max(running_total, 0)
    return RulePricingResult(
        base_total_pennies=base_total,
        final_total_pennies=final_total,
        adjustment_pennies=final_total - base_total,
        applied=applied,
        skipped=skipped,
    )


def normalize_rule_set(rules: Sequence[PricingRule]) -> List[PricingRule]:
    """
    Enforce cap / bundle exclusivity on a club's rule set

    - household_cap and bundle rules are marked is_exclusive
    - an active bundle rule deactivates every active household cap
      (bundles short-circuit the engine, so such a cap would never run)
    """
    has_active_bundle = any(
        r.is_active and r.rule_type == PricingRuleType.BUNDLE for r in rules
    )
    normalized = []

    for rule in rules:
        if rule.rule_type not in (PricingRuleType.HOUSEHOLD_CAP, PricingRuleType.BUNDLE):
            normalized.append(rule)
            continue

        update = {"is_exclusive": True}
        if rule.rule_type == PricingRuleType.HOUSEHOLD_CAP and rule.is_active and has_active_bundle:
            update["is_active"] = False
            logger.info(f"Household cap {rule.id} deactivated: an active bundle rule exists")
        normalized.append(rule.model_copy(update=update))

    return normalized
