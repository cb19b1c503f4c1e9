"""
Household Pricing Models

Pydantic models: request / response bodies and recalculation plan records
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pricing.schemas import (
    ChargeKind,
    ChargeLineItem,
    HouseholdMember,
    PlanKind,
    PricedItem,
    PricingResult,
    PricingRule,
    ReconciliationResult,
    RulePricingResult,
    SubscriptionRecord,
    SubscriptionStatus,
)


# =============================================
# Plans
# =============================================

class MembershipPlan(BaseModel):
    """Billing plan metadata (owned by plan storage)"""
    id: str
    name: Optional[str] = None
    is_player_plan: bool = False
    is_junior_only: bool = False

    @property
    def kind(self) -> PlanKind:
        if self.is_player_plan and self.is_junior_only:
            return PlanKind.JUNIOR
        if self.is_player_plan:
            return PlanKind.ADULT
        return PlanKind.OTHER


# =============================================
# Recalculation plan
# =============================================

class SubscriptionDraft(BaseModel):
    """Pending subscription the caller should insert"""
    club_id: Optional[str] = None
    plan_id: str
    member_id: Optional[str] = None
    household_id: str
    status: SubscriptionStatus = SubscriptionStatus.PENDING
    membership_year: int
    start_date: date
    end_date: Optional[date] = None
    auto_renews: bool = False
    amount_pennies: int
    discount_pennies: int = 0
    stripe_subscription_id: Optional[str] = None
    notes_internal: str
    charge_id: str = Field(..., description="Charge item this draft satisfies")


class SubscriptionCancellation(BaseModel):
    """Pending subscription the caller should mark cancelled"""
    subscription_id: str
    status: SubscriptionStatus = SubscriptionStatus.CANCELLED
    notes_internal: str


class MissingPlanMapping(BaseModel):
    charge_id: str
    charge_kind: ChargeKind


class PlanMismatch(BaseModel):
    """Charge satisfied by a stored record on a different plan than the mapped one"""
    charge_id: str
    charge_kind: ChargeKind
    expected_plan_id: str
    subscription_id: str
    subscription_plan_id: str


class RecalculationPlan(BaseModel):
    household_id: str
    club_id: Optional[str] = None
    season_year: int
    pricing: PricingResult
    reconciliation: ReconciliationResult
    to_create: List[SubscriptionDraft] = Field(default_factory=list)
    to_cancel: List[SubscriptionCancellation] = Field(default_factory=list)
    skipped_duplicates: List[str] = Field(default_factory=list, description="Charge ids already stored")
    missing_plan_mappings: List[MissingPlanMapping] = Field(default_factory=list)
    plan_mismatches: List[PlanMismatch] = Field(default_factory=list)

    @property
    def cancelled_ids(self) -> List[str]:
        return [c.subscription_id for c in self.to_cancel]


# =============================================
# API bodies
# =============================================

class PricingPreviewRequest(BaseModel):
    members: List[HouseholdMember]
    season_year: Optional[int] = None
    config: Optional[Dict[str, Any]] = None


class PricingPreviewResponse(BaseModel):
    pricing: PricingResult
    charges: List[ChargeLineItem]


class ApplyRulesRequest(BaseModel):
    items: List[PricedItem]
    rules: List[PricingRule] = Field(default_factory=list)


class NormalizeRulesRequest(BaseModel):
    rules: List[PricingRule]


class RecalculateRequest(BaseModel):
    club_id: Optional[str] = None
    members: List[HouseholdMember] = Field(default_factory=list)
    subscriptions: List[SubscriptionRecord] = Field(default_factory=list)
    plan_mappings: Dict[ChargeKind, str] = Field(default_factory=dict)
    season_year: Optional[int] = None
    config: Optional[Dict[str, Any]] = None
    strict: bool = False


class SubscriptionPricingRequest(BaseModel):
    subscriptions: List[SubscriptionRecord] = Field(default_factory=list)
    plans: List[MembershipPlan] = Field(default_factory=list)
    rules: List[PricingRule] = Field(default_factory=list)
    season_year: Optional[int] = None


class SubscriptionPricingResponse(BaseModel):
    household_id: str
    season_year: int
    pricing: RulePricingResult
    subscriptions: List[SubscriptionRecord]
