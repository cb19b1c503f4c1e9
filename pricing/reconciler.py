"""
Subscription reconciler

Compares freshly built charge items with a household's stored subscription
records for the season. Pure: it returns what to create and what to cancel,
the caller writes the changes.
"""
from typing import List, Optional, Sequence, Set

from loguru import logger

from .schemas import (
    ChargeLineItem,
    ChargeMatch,
    ReconciliationResult,
    ReconciliationTotals,
    SeasonSubscriptions,
    SubscriptionRecord,
    SubscriptionStatus,
)


def subscription_matches_charge(subscription: SubscriptionRecord, charge: ChargeLineItem) -> bool:
    """Same member, or both household-level. Amounts are not compared."""
    if charge.is_household_level:
        return subscription.is_household_level
    return subscription.member_id == charge.member_id


def season_subscriptions(
    subscriptions: Sequence[SubscriptionRecord],
    household_id: str,
    season_year: int,
) -> List[SubscriptionRecord]:
    return [
        s for s in subscriptions
        if s.household_id == household_id and s.membership_year == season_year
    ]


def _claim(
    charge: ChargeLineItem,
    candidates: Sequence[SubscriptionRecord],
    claimed: Set[str],
) -> Optional[SubscriptionRecord]:
    for sub in candidates:
        if sub.id in claimed:
            continue
        if subscription_matches_charge(sub, charge):
            claimed.add(sub.id)
            return sub
    return None


def reconcile_subscriptions(
    charges: Sequence[ChargeLineItem],
    subscriptions: Sequence[SubscriptionRecord],
    household_id: str,
    season_year: int,
) -> ReconciliationResult:
    """
    Reconcile charge items against stored subscriptions

    - only this household's records for `season_year` are considered
    - cancelled records never satisfy a charge
    - each charge claims the first unclaimed matching record (input order)
    - unmatched charges -> to_create
    - unclaimed pending records -> to_cancel (active records are never cancelled)
    """
    season = season_subscriptions(subscriptions, household_id, season_year)
    grouped = SeasonSubscriptions(
        active=[s for s in season if s.status == SubscriptionStatus.ACTIVE],
        pending=[s for s in season if s.status == SubscriptionStatus.PENDING],
        cancelled=[s for s in season if s.status == SubscriptionStatus.CANCELLED],
    )
    claimable = [s for s in season if s.status != SubscriptionStatus.CANCELLED]

    claimed: Set[str] = set()
    matched: List[ChargeMatch] = []
    to_create: List[ChargeLineItem] = []

    for charge in charges:
        sub = _claim(charge, claimable, claimed)
        matched.append(ChargeMatch(charge=charge, subscription=sub))
        if sub is None:
            to_create.append(charge)

    to_cancel = [s for s in grouped.pending if s.id not in claimed]

    engine_total = sum(c.annual_pennies for c in charges)
    active_total = 0
    pending_total = 0
    for m in matched:
        if m.subscription is None:
            continue
        if m.subscription.status == SubscriptionStatus.ACTIVE:
            active_total += m.subscription.net_pennies
        elif m.subscription.status == SubscriptionStatus.PENDING:
            pending_total += m.subscription.net_pennies

    result = ReconciliationResult(
        household_id=household_id,
        season_year=season_year,
        charges=list(charges),
        matched=matched,
        to_create=to_create,
        to_cancel=to_cancel,
        season_subscriptions=grouped,
        totals=ReconciliationTotals(
            engine_annual_pennies=engine_total,
            already_covered_annual_pennies=active_total,
            pending_annual_pennies=pending_total,
            remaining_annual_pennies=max(engine_total - active_total, 0),
        ),
    )

    logger.info(f"Reconciled subscriptions: {result.summary()}")
    return result
