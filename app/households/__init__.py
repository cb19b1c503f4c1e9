"""
Household Pricing Module

- pricing preview and rule application
- recalculation planning against stored subscriptions
"""

from .router import router as households_router, pricing_router
from .service import household_pricing_service, HouseholdPricingService
from .models import MembershipPlan, RecalculationPlan, SubscriptionDraft

__all__ = [
    "households_router",
    "pricing_router",
    "household_pricing_service",
    "HouseholdPricingService",
    "MembershipPlan",
    "RecalculationPlan",
    "SubscriptionDraft",
]
