"""
Band pricing

Prices classified members individually from the club's price tables.
Juniors are only counted here; their charge is bundle-shaped (see bundles.py).
"""
from dataclasses import dataclass, field
from typing import Dict, List

from .classifier import MemberClassification
from .schemas import AdultBand, ClubPricingConfig, MemberCategory, SocialPricingItem


ADULT_BAND_PRICE_FIELDS: Dict[AdultBand, str] = {
    AdultBand.MALE_FULL: "male_full_price_pennies",
    AdultBand.MALE_INTERMEDIATE: "male_intermediate_price_pennies",
    AdultBand.FEMALE_FULL: "female_full_price_pennies",
    AdultBand.FEMALE_INTERMEDIATE: "female_intermediate_price_pennies",
}

ADULT_BAND_LABELS: Dict[AdultBand, str] = {
    AdultBand.MALE_FULL: "male full",
    AdultBand.MALE_INTERMEDIATE: "male intermediate",
    AdultBand.FEMALE_FULL: "female full",
    AdultBand.FEMALE_INTERMEDIATE: "female intermediate",
}


def band_price(band: AdultBand, config: ClubPricingConfig) -> int:
    """Annual price for an adult band"""
    return getattr(config, ADULT_BAND_PRICE_FIELDS[band])


@dataclass
class PricedAdult:
    """Adult player with an individual (pre-bundle) price"""
    member_id: str
    band: AdultBand
    age_on_cutoff: int
    annual_pennies: int
    bundle_age: bool  # age >= adult_bundle_min_age


@dataclass
class BandPricing:
    """Individually priced household, input to the bundle optimizer"""
    adults: List[PricedAdult] = field(default_factory=list)
    junior_ids: List[str] = field(default_factory=list)
    socials: List[SocialPricingItem] = field(default_factory=list)
    unclassified: List[MemberClassification] = field(default_factory=list)

    @property
    def adult_sum_pennies(self) -> int:
        return sum(a.annual_pennies for a in self.adults)

    @property
    def social_sum_pennies(self) -> int:
        return sum(s.annual_pennies for s in self.socials)

    @property
    def adult_count(self) -> int:
        return len(self.adults)

    @property
    def adult_bundle_age_count(self) -> int:
        return sum(1 for a in self.adults if a.bundle_age)

    @property
    def junior_count(self) -> int:
        return len(self.junior_ids)

    @property
    def social_count(self) -> int:
        return len(self.socials)


def price_classified_members(
    classifications: List[MemberClassification],
    config: ClubPricingConfig,
) -> BandPricing:
    """Look up each classified member's individual price, keeping input order"""
    pricing = BandPricing()

    for c in classifications:
        if not c.is_billable:
            pricing.unclassified.append(c)
        elif c.category == MemberCategory.ADULT:
            pricing.adults.append(PricedAdult(
                member_id=c.member_id,
                band=c.band,
                age_on_cutoff=c.age_on_cutoff,
                annual_pennies=band_price(c.band, config),
                bundle_age=c.age_on_cutoff >= config.adult_bundle_min_age,
            ))
        elif c.category == MemberCategory.JUNIOR:
            pricing.junior_ids.append(c.member_id)
        elif c.category == MemberCategory.SOCIAL:
            pricing.socials.append(SocialPricingItem(
                member_id=c.member_id,
                annual_pennies=config.social_adult_price_pennies,
            ))

    return pricing
