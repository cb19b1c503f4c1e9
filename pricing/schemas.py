"""
Pricing engine schemas

Pydantic models shared by the classifier, strategies, rule engine and reconciler.
Every monetary field is an integer number of pennies; fractional, negative or
non-finite amounts are rejected when the model is built.
"""

import math
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ==================== Helpers ====================

def parse_date(value: Any) -> Optional[date]:
    """date / datetime / ISO string -> date, anything unparsable -> None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def to_pennies(value: Any) -> int:
    """Validate a money amount: non-negative whole pennies"""
    if isinstance(value, bool):
        raise ValueError("amount must be a whole number of pennies")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"amount must be a whole number of pennies: {value}")
        value = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ValueError(f"amount must be a whole number of pennies: {value}")
        value = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValueError(f"amount must be a whole number of pennies: {value!r}")
        value = int(stripped)

    if not isinstance(value, int):
        raise ValueError(f"amount must be a whole number of pennies: {value!r}")
    if value < 0:
        raise ValueError(f"amount must not be negative: {value}")
    return value


# ==================== Enums ====================

class Gender(str, Enum):
    """Member sex as recorded by the household"""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: Any) -> "Gender":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        value_lower = str(value).strip().lower()
        if value_lower in ("male", "m", "man", "boy"):
            return cls.MALE
        if value_lower in ("female", "f", "woman", "girl"):
            return cls.FEMALE
        if value_lower in ("other", "x", "non-binary", "nonbinary"):
            return cls.OTHER
        return cls.UNKNOWN


class MemberRole(str, Enum):
    """What the member does at the club"""
    PLAYER = "player"
    SUPPORTER = "supporter"
    COACH = "coach"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: Any) -> "MemberRole":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.OTHER
        value_lower = str(value).strip().lower()
        if value_lower in ("player", "playing", "playing_member"):
            return cls.PLAYER
        if value_lower in ("supporter", "social", "parent"):
            return cls.SUPPORTER
        if value_lower == "coach":
            return cls.COACH
        # "member" and anything unrecognised is not billed
        return cls.OTHER


class MemberCategory(str, Enum):
    """Classification used to pick a price table"""
    JUNIOR = "junior"
    ADULT = "adult"
    SOCIAL = "social"
    UNCLASSIFIED = "unclassified"


class AdultBand(str, Enum):
    """Adult playing price band"""
    MALE_FULL = "male_full"
    MALE_INTERMEDIATE = "male_intermediate"
    FEMALE_FULL = "female_full"
    FEMALE_INTERMEDIATE = "female_intermediate"


class JuniorBundleType(str, Enum):
    """Shape of the household junior charge"""
    NONE = "none"
    SINGLE = "single"
    MULTI = "multi"
    PER_JUNIOR = "per_junior"  # flat pricing: single price per head


class PricingModel(str, Enum):
    """Calculation path selected by the club"""
    BUNDLED = "bundled"
    FLAT = "flat"
    FAMILY_CAP = "family_cap"  # reserved


class PricingRuleType(str, Enum):
    HOUSEHOLD_CAP = "household_cap"
    MULTI_MEMBER_DISCOUNT = "multi_member_discount"
    BUNDLE = "bundle"


class PlanKind(str, Enum):
    ADULT = "adult"
    JUNIOR = "junior"
    OTHER = "other"


class ChargeKind(str, Enum):
    ADULT_BUNDLE = "adult-bundle"
    ADULT_TOPUP = "adult-topup"
    JUNIOR_BUNDLE = "junior-bundle"
    SOCIAL_ADULT = "social-adult"


class BillingPeriod(str, Enum):
    ANNUAL = "annual"


class SubscriptionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"


# ==================== Inputs ====================

class HouseholdMember(BaseModel):
    """A household member as read from member storage"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Member ID")
    date_of_birth: Optional[date] = Field(None, description="Date of birth (None if missing or unparsable)")
    gender: Gender = Field(default=Gender.UNKNOWN)
    role: MemberRole = Field(
        default=MemberRole.OTHER,
        validation_alias=AliasChoices("role", "member_type"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> Optional[date]:
        return parse_date(v)

    @field_validator("gender", mode="before")
    @classmethod
    def parse_gender(cls, v: Any) -> Gender:
        return Gender.from_string(v)

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v: Any) -> MemberRole:
        return MemberRole.from_string(v)


class ClubPricingConfig(BaseModel):
    """
    One season's effective pricing settings for a club

    Use pricing.config.DEFAULT_PRICING_CONFIG when a club has no stored config.
    """
    membership_year: Optional[int] = Field(None, description="Season this config belongs to")
    pricing_model: PricingModel = Field(default=PricingModel.BUNDLED)

    # Age rules
    cutoff_month: int = Field(..., ge=1, le=12, description="Age cutoff month")
    cutoff_day: int = Field(..., ge=1, le=31, description="Age cutoff day")
    junior_max_age: int = Field(..., ge=0)
    adult_min_age: int = Field(..., ge=0)
    adult_bundle_min_age: int = Field(..., ge=0, description="Full-band / bundle age")

    # Adult bundle
    enable_adult_bundle: bool
    require_junior_for_adult_bundle: bool
    min_adults_for_bundle: int = Field(..., ge=1)

    # Price tables (pennies)
    male_full_price_pennies: int
    male_intermediate_price_pennies: int
    female_full_price_pennies: int
    female_intermediate_price_pennies: int
    junior_single_price_pennies: int
    junior_multi_price_pennies: int
    social_adult_price_pennies: int
    adult_bundle_price_pennies: int

    @field_validator(
        "male_full_price_pennies",
        "male_intermediate_price_pennies",
        "female_full_price_pennies",
        "female_intermediate_price_pennies",
        "junior_single_price_pennies",
        "junior_multi_price_pennies",
        "social_adult_price_pennies",
        "adult_bundle_price_pennies",
        mode="before",
    )
    @classmethod
    def validate_price(cls, v: Any) -> int:
        return to_pennies(v)


class PricingRule(BaseModel):
    """Club-configured adjustment for the generic rule engine"""
    id: str
    rule_type: PricingRuleType

    applies_to_plan_ids: Optional[List[str]] = Field(None, description="None = all plans")
    min_quantity: Optional[int] = Field(None, ge=0)

    cap_amount_pennies: Optional[int] = None
    discount_amount_pennies: Optional[int] = None
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)

    bundle_price_pennies: Optional[int] = None
    bundle_adults_required: Optional[int] = Field(None, ge=0)
    bundle_juniors_required: Optional[int] = Field(None, ge=0)
    bundle_juniors_any: Optional[bool] = None

    priority: int = Field(default=100, description="Lower runs first")
    is_active: bool = True
    is_exclusive: bool = False

    @field_validator(
        "cap_amount_pennies",
        "discount_amount_pennies",
        "bundle_price_pennies",
        mode="before",
    )
    @classmethod
    def validate_amount(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        return to_pennies(v)


class PricedItem(BaseModel):
    """One priced plan line fed to the rule engine"""
    plan_id: str
    kind: PlanKind = PlanKind.OTHER
    amount_pennies: int

    @field_validator("amount_pennies", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> int:
        return to_pennies(v)


class SubscriptionRecord(BaseModel):
    """A persisted billing obligation (owned by subscription storage)"""
    id: str
    club_id: Optional[str] = None
    plan_id: str
    member_id: Optional[str] = None
    household_id: str
    status: SubscriptionStatus
    membership_year: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    auto_renews: Optional[bool] = None
    amount_pennies: int = 0
    discount_pennies: int = 0
    stripe_subscription_id: Optional[str] = None
    notes_internal: Optional[str] = None

    @field_validator("membership_year", mode="before")
    @classmethod
    def default_year(cls, v: Any) -> Any:
        if v is None:
            return 0
        if isinstance(v, bool):
            raise ValueError("membership_year must be a year, not a boolean")
        return v

    @field_validator("amount_pennies", "discount_pennies", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> int:
        if v is None:
            return 0
        return to_pennies(v)

    @property
    def net_pennies(self) -> int:
        return max(self.amount_pennies - self.discount_pennies, 0)

    @property
    def is_household_level(self) -> bool:
        return self.member_id is None


# ==================== Engine Results ====================

class AdultPricingItem(BaseModel):
    member_id: str
    band: AdultBand
    age_on_cutoff: int
    annual_pennies: int
    covered_by_adult_bundle: bool = False


class JuniorBundle(BaseModel):
    type: JuniorBundleType = JuniorBundleType.NONE
    annual_pennies: int = 0
    covered_junior_ids: List[str] = Field(default_factory=list)


class SocialPricingItem(BaseModel):
    member_id: str
    annual_pennies: int


class MemberBreakdownItem(BaseModel):
    """Per-member line of the pricing breakdown (shown to admins)"""
    member_id: str
    category: MemberCategory
    band: Optional[AdultBand] = None
    age_on_cutoff: int
    price_pennies: int = 0
    covered_by_adult_bundle: bool = False
    covered_by_junior_bundle: bool = False
    note: str = ""


class PricingDebug(BaseModel):
    """Counts and sub-totals for transparency UIs"""
    adult_sum_pennies: int = 0            # adults priced individually, before bundle
    adult_total_pennies: int = 0          # adults after bundle decision
    junior_sum_pennies: int = 0
    social_sum_pennies: int = 0
    adult_count: int = 0
    adult_bundle_age_count: int = 0
    junior_count: int = 0
    social_count: int = 0
    unclassified_count: int = 0


class PricingResult(BaseModel):
    season_year: int
    cutoff_date: date
    pricing_model: PricingModel
    total_pennies: int

    adults: List[AdultPricingItem] = Field(default_factory=list)
    adult_bundle_eligible: bool = False
    adult_bundle_applied: bool = False
    adult_bundle_price_pennies: int = 0
    adult_bundle_member_ids: List[str] = Field(default_factory=list)

    junior_bundle: JuniorBundle = Field(default_factory=JuniorBundle)
    socials: List[SocialPricingItem] = Field(default_factory=list)

    member_breakdown: List[MemberBreakdownItem] = Field(default_factory=list)
    debug: PricingDebug = Field(default_factory=PricingDebug)


class ChargeLineItem(BaseModel):
    """A computed, not-yet-persisted unit of billing"""
    id: str
    kind: ChargeKind
    label: str
    member_id: Optional[str] = None
    annual_pennies: int
    billing_period: BillingPeriod = BillingPeriod.ANNUAL

    @field_validator("annual_pennies", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> int:
        return to_pennies(v)

    @property
    def is_household_level(self) -> bool:
        return self.member_id is None


# ==================== Rule Engine Results ====================

class AppliedRule(BaseModel):
    rule_id: str
    rule_type: PricingRuleType
    amount_pennies: int = Field(..., description="Signed impact on the running total")


class SkippedRule(BaseModel):
    rule_id: str
    rule_type: PricingRuleType
    reason: str


class RulePricingResult(BaseModel):
    base_total_pennies: int
    final_total_pennies: int
    adjustment_pennies: int
    applied: List[AppliedRule] = Field(default_factory=list)
    skipped: List[SkippedRule] = Field(default_factory=list)


# ==================== Reconciliation Results ====================

class ChargeMatch(BaseModel):
    charge: ChargeLineItem
    subscription: Optional[SubscriptionRecord] = None


class SeasonSubscriptions(BaseModel):
    active: List[SubscriptionRecord] = Field(default_factory=list)
    pending: List[SubscriptionRecord] = Field(default_factory=list)
    cancelled: List[SubscriptionRecord] = Field(default_factory=list)


class ReconciliationTotals(BaseModel):
    engine_annual_pennies: int = 0
    already_covered_annual_pennies: int = 0   # active only
    pending_annual_pennies: int = 0           # pending only
    remaining_annual_pennies: int = 0         # engine - active, floored at 0


class ReconciliationResult(BaseModel):
    household_id: str
    season_year: int
    charges: List[ChargeLineItem] = Field(default_factory=list)
    matched: List[ChargeMatch] = Field(default_factory=list)
    to_create: List[ChargeLineItem] = Field(default_factory=list)
    to_cancel: List[SubscriptionRecord] = Field(default_factory=list)
    season_subscriptions: SeasonSubscriptions = Field(default_factory=SeasonSubscriptions)
    totals: ReconciliationTotals = Field(default_factory=ReconciliationTotals)

    @property
    def to_cancel_ids(self) -> List[str]:
        return [s.id for s in self.to_cancel]

    def summary(self) -> Dict[str, Any]:
        return {
            "household_id": self.household_id,
            "season_year": self.season_year,
            "charges": len(self.charges),
            "to_create": len(self.to_create),
            "to_cancel": len(self.to_cancel),
            **self.totals.model_dump(),
        }
