"""
Household membership pricing engine

Classifies household members, prices them against a club's bands and
bundles, applies ad-hoc pricing rules and reconciles the resulting charges
with stored subscriptions.
"""
from .errors import PricingError, PricingConfigError, MissingPlanMappingError
from .schemas import (
    HouseholdMember,
    ClubPricingConfig,
    PricingRule,
    PricedItem,
    PricingResult,
    ChargeLineItem,
    SubscriptionRecord,
    ReconciliationResult,
    RulePricingResult,
    PricingModel,
)
from .config import (
    DEFAULT_PRICING_CONFIG,
    PricingSettings,
    coerce_pricing_config,
    get_pricing_settings,
)
from .classifier import age_on_cutoff, classify_member, cutoff_date
from .engine import calculate_club_pricing, get_pricing_strategy, price_household
from .charges import build_charge_items
from .rules import apply_pricing_rules, normalize_rule_set
from .reconciler import reconcile_subscriptions

__all__ = [
    "PricingError",
    "PricingConfigError",
    "MissingPlanMappingError",
    "HouseholdMember",
    "ClubPricingConfig",
    "PricingRule",
    "PricedItem",
    "PricingResult",
    "ChargeLineItem",
    "SubscriptionRecord",
    "ReconciliationResult",
    "RulePricingResult",
    "PricingModel",
    "DEFAULT_PRICING_CONFIG",
    "PricingSettings",
    "coerce_pricing_config",
    "get_pricing_settings",
    "age_on_cutoff",
    "classify_member",
    "cutoff_date",
    "calculate_club_pricing",
    "get_pricing_strategy",
    "price_household",
    "build_charge_items",
    "apply_pricing_rules",
    "normalize_rule_set",
    "reconcile_subscriptions",
]
