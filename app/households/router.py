"""
Household Pricing API Router

Stateless pricing endpoints. Every input arrives in the request body;
the caller persists the returned plan.
"""

from typing import List

from fastapi import APIRouter, HTTPException
from loguru import logger

from pricing.config import coerce_pricing_config
from pricing.errors import MissingPlanMappingError, PricingConfigError
from pricing.rules import apply_pricing_rules, normalize_rule_set
from pricing.schemas import ClubPricingConfig, PricingRule, RulePricingResult

from .models import (
    ApplyRulesRequest,
    NormalizeRulesRequest,
    PricingPreviewRequest,
    PricingPreviewResponse,
    RecalculateRequest,
    RecalculationPlan,
    SubscriptionPricingRequest,
    SubscriptionPricingResponse,
)
from .service import household_pricing_service

router = APIRouter(prefix="/households", tags=["Household Pricing"])
pricing_router = APIRouter(prefix="/pricing", tags=["Pricing"])


def _config_error(e: PricingConfigError) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors})


# =============================================
# Pricing
# =============================================

@pricing_router.post("/preview", response_model=PricingPreviewResponse)
async def preview_pricing(body: PricingPreviewRequest):
    """
    Household pricing preview

    Prices the members with the club config (defaults when omitted) and
    returns the pricing result with its charge line items.
    """
    try:
        return household_pricing_service.preview(body.members, body.season_year, body.config)
    except PricingConfigError as e:
        raise _config_error(e)


@pricing_router.post("/rules/apply", response_model=RulePricingResult)
async def apply_rules(body: ApplyRulesRequest):
    """Apply pricing rules to priced plan items"""
    return apply_pricing_rules(body.items, body.rules)


@pricing_router.post("/rules/normalize", response_model=List[PricingRule])
async def normalize_rules(body: NormalizeRulesRequest):
    """
    Normalize a club rule set

    Caps and bundles become exclusive; an active bundle deactivates caps.
    """
    return normalize_rule_set(body.rules)


@pricing_router.post("/config/coerce", response_model=ClubPricingConfig)
async def coerce_config(body: dict):
    """Fill a partial pricing config from defaults and validate it"""
    try:
        return coerce_pricing_config(body)
    except PricingConfigError as e:
        raise _config_error(e)


# =============================================
# Households
# =============================================

@router.post("/{household_id}/recalculate", response_model=RecalculationPlan)
async def recalculate_household(household_id: str, body: RecalculateRequest):
    """
    Recalculation plan

    Pending subscriptions to create and cancel so that stored records match
    the engine's charges.

    - strict=true: a charge kind without a plan mapping fails with 422
    """
    try:
        return household_pricing_service.plan_recalculation(
            household_id=household_id,
            club_id=body.club_id,
            members=body.members,
            subscriptions=body.subscriptions,
            plan_mappings=body.plan_mappings,
            season_year=body.season_year,
            config=body.config,
            strict=body.strict,
        )
    except PricingConfigError as e:
        raise _config_error(e)
    except MissingPlanMappingError as e:
        logger.error(f"Recalculation failed for household {household_id}: {e}")
        raise HTTPException(status_code=422, detail={
            "message": str(e),
            "charge_kinds": e.charge_kinds,
        })


@router.post("/{household_id}/pricing", response_model=SubscriptionPricingResponse)
async def price_household_subscriptions(household_id: str, body: SubscriptionPricingRequest):
    """Apply pricing rules to the household's stored subscriptions for a season"""
    return household_pricing_service.price_subscriptions(
        household_id=household_id,
        subscriptions=body.subscriptions,
        plans=body.plans,
        rules=body.rules,
        season_year=body.season_year,
    )
