"""
Household Pricing Service

Stateless application service on top of the pricing engine:
- pricing preview (result + charge items)
- recalculation planning: plan mapping, duplicate guard, pending drafts, cancellations
- rule-engine pricing of stored subscriptions
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from loguru import logger

from pricing.config import get_pricing_settings
from pricing.engine import price_household
from pricing.errors import MissingPlanMappingError
from pricing.reconciler import reconcile_subscriptions, season_subscriptions
from pricing.rules import apply_pricing_rules
from pricing.schemas import (
    ChargeKind,
    HouseholdMember,
    PlanKind,
    PricedItem,
    PricingRule,
    SubscriptionRecord,
    SubscriptionStatus,
)

from .models import (
    MembershipPlan,
    MissingPlanMapping,
    PlanMismatch,
    PricingPreviewResponse,
    RecalculationPlan,
    SubscriptionCancellation,
    SubscriptionDraft,
    SubscriptionPricingResponse,
)


CANCELLATION_NOTE = "Cancelled by recalculation: no matching charge for this season"


def subscription_key(plan_id: str, member_id: Optional[str], household_id: str) -> str:
    """(plan, member-or-household, household) uniqueness key"""
    return f"{plan_id}::{member_id or 'household'}::{household_id}"


class HouseholdPricingService:
    """Household pricing service"""

    def _season_year(self, season_year: Optional[int]) -> int:
        if season_year is None:
            return get_pricing_settings().default_season_year
        return season_year

    def season_start_date(self, club_id: Optional[str], season_year: int) -> date:
        """Membership year starts on 1 January for every club"""
        return date(season_year, 1, 1)

    # =============================================
    # Preview
    # =============================================

    def preview(
        self,
        members: Sequence[HouseholdMember],
        season_year: Optional[int] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> PricingPreviewResponse:
        result, charges = price_household(members, self._season_year(season_year), config)
        return PricingPreviewResponse(pricing=result, charges=charges)

    # =============================================
    # Recalculation
    # =============================================

    def plan_recalculation(
        self,
        household_id: str,
        club_id: Optional[str],
        members: Sequence[HouseholdMember],
        subscriptions: Sequence[SubscriptionRecord],
        plan_mappings: Mapping[ChargeKind, str],
        season_year: Optional[int] = None,
        config: Optional[Mapping[str, Any]] = None,
        strict: bool = False,
    ) -> RecalculationPlan:
        """
        Work out which pending subscriptions to create and cancel

        Raises:
            MissingPlanMappingError: strict mode and a charge kind to create has no plan
        """
        season_year = self._season_year(season_year)
        result, charges = price_household(members, season_year, config)
        reconciliation = reconcile_subscriptions(charges, subscriptions, household_id, season_year)

        existing_keys: Set[str] = {
            subscription_key(s.plan_id, s.member_id, s.household_id)
            for s in season_subscriptions(subscriptions, household_id, season_year)
            if s.status != SubscriptionStatus.CANCELLED
        }

        plan = RecalculationPlan(
            household_id=household_id,
            club_id=club_id,
            season_year=season_year,
            pricing=result,
            reconciliation=reconciliation,
        )
        start_date = self.season_start_date(club_id, season_year)
        mappings = {ChargeKind(kind): plan_id for kind, plan_id in plan_mappings.items()}

        # matching is by member identity only, so a record on another plan can satisfy a charge
        for match in reconciliation.matched:
            expected = mappings.get(match.charge.kind)
            sub = match.subscription
            if sub is None or not expected or sub.plan_id == expected:
                continue
            logger.warning(
                f"Charge {match.charge.id} satisfied by subscription {sub.id} on plan {sub.plan_id}, "
                f"expected plan {expected}"
            )
            plan.plan_mismatches.append(PlanMismatch(
                charge_id=match.charge.id,
                charge_kind=match.charge.kind,
                expected_plan_id=expected,
                subscription_id=sub.id,
                subscription_plan_id=sub.plan_id,
            ))

        for charge in reconciliation.to_create:
            plan_id = mappings.get(charge.kind)
            if not plan_id:
                logger.error(
                    f"No plan mapping for charge kind {charge.kind.value} "
                    f"(club_id={club_id}, year={season_year})"
                )
                plan.missing_plan_mappings.append(
                    MissingPlanMapping(charge_id=charge.id, charge_kind=charge.kind)
                )
                continue

            key = subscription_key(plan_id, charge.member_id, household_id)
            if key in existing_keys:
                logger.warning(f"Skipping duplicate subscription {key}")
                plan.skipped_duplicates.append(charge.id)
                continue
            existing_keys.add(key)

            plan.to_create.append(SubscriptionDraft(
                club_id=club_id,
                plan_id=plan_id,
                member_id=charge.member_id,
                household_id=household_id,
                membership_year=season_year,
                start_date=start_date,
                amount_pennies=charge.annual_pennies,
                notes_internal=f"Created via recalculation for {season_year}",
                charge_id=charge.id,
            ))

        if strict and plan.missing_plan_mappings:
            kinds = sorted({m.charge_kind.value for m in plan.missing_plan_mappings})
            raise MissingPlanMappingError(kinds, club_id, season_year)

        plan.to_cancel = [
            SubscriptionCancellation(subscription_id=s.id, notes_internal=CANCELLATION_NOTE)
            for s in reconciliation.to_cancel
        ]

        logger.info(
            f"Recalculation plan for household {household_id} ({season_year}): "
            f"{len(plan.to_create)} to create, cancel {plan.cancelled_ids}, "
            f"{len(plan.skipped_duplicates)} duplicate(s), "
            f"{len(plan.missing_plan_mappings)} unmapped, "
            f"{len(plan.plan_mismatches)} plan mismatch(es)"
        )
        return plan

    # =============================================
    # Stored subscription pricing
    # =============================================

    def price_subscriptions(
        self,
        household_id: str,
        subscriptions: Sequence[SubscriptionRecord],
        plans: Sequence[MembershipPlan],
        rules: Sequence[PricingRule],
        season_year: Optional[int] = None,
    ) -> SubscriptionPricingResponse:
        """
        Run the rule engine over a household's stored subscriptions

        Items are priced at their stored amount; cancelled records are ignored.
        A subscription whose plan is unknown is priced as "other".
        """
        season_year = self._season_year(season_year)
        plans_by_id: Dict[str, MembershipPlan] = {p.id: p for p in plans}

        season = [
            s for s in season_subscriptions(subscriptions, household_id, season_year)
            if s.status != SubscriptionStatus.CANCELLED
        ]
        items: List[PricedItem] = []
        for s in season:
            plan = plans_by_id.get(s.plan_id)
            items.append(PricedItem(
                plan_id=s.plan_id,
                kind=plan.kind if plan else PlanKind.OTHER,
                amount_pennies=s.amount_pennies,
            ))

        pricing = apply_pricing_rules(items, rules)
        return SubscriptionPricingResponse(
            household_id=household_id,
            season_year=season_year,
            pricing=pricing,
            subscriptions=season,
        )


# Singleton instance
household_pricing_service = HouseholdPricingService()
