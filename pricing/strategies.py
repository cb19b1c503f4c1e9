"""
Pricing strategies

One PricingStrategy per `pricing_model`. Classification and band lookups are
shared; a strategy only decides how adults and juniors are bundled.

- bundled: adult bundle optimizer + single/multi junior bundle
- flat: no bundles, every junior at the single price
- family_cap: reserved, currently priced as bundled
"""
from abc import ABC, abstractmethod
from typing import List, Tuple

from loguru import logger

from .bands import ADULT_BAND_LABELS, BandPricing, price_classified_members
from .bundles import AdultBundleDecision, decide_adult_bundle, junior_bundle, per_junior_pricing
from .classifier import MemberClassification, classify_household
from .schemas import (
    AdultPricingItem,
    ClubPricingConfig,
    HouseholdMember,
    JuniorBundle,
    JuniorBundleType,
    MemberBreakdownItem,
    MemberCategory,
    PricingDebug,
    PricingModel,
    PricingResult,
)


JUNIOR_BUNDLE_NOTES = {
    JuniorBundleType.SINGLE: "Covered by single junior membership",
    JuniorBundleType.MULTI: "Covered by multi-junior bundle",
}


class PricingStrategy(ABC):
    """Base class: classify -> band prices -> bundles -> PricingResult"""

    pricing_model: PricingModel = PricingModel.BUNDLED

    def calculate(
        self,
        members: List[HouseholdMember],
        season_year: int,
        config: ClubPricingConfig,
    ) -> PricingResult:
        cutoff, classifications = classify_household(members, season_year, config)
        pricing = price_classified_members(classifications, config)

        decision = self.decide_adults(pricing, config)
        juniors = self.price_juniors(pricing, config)

        adults = [
            AdultPricingItem(
                member_id=a.member_id,
                band=a.band,
                age_on_cutoff=a.age_on_cutoff,
                annual_pennies=0 if a.member_id in decision.covered_member_ids else a.annual_pennies,
                covered_by_adult_bundle=a.member_id in decision.covered_member_ids,
            )
            for a in pricing.adults
        ]
        adult_total = sum(a.annual_pennies for a in adults)
        if decision.applied:
            adult_total += decision.bundle_price_pennies

        total = adult_total + juniors.annual_pennies + pricing.social_sum_pennies

        result = PricingResult(
            season_year=season_year,
            cutoff_date=cutoff,
            pricing_model=self.pricing_model,
            total_pennies=max(total, 0),
            adults=adults,
            adult_bundle_eligible=decision.eligible,
            adult_bundle_applied=decision.applied,
            adult_bundle_price_pennies=decision.bundle_price_pennies,
            adult_bundle_member_ids=list(decision.covered_member_ids),
            junior_bundle=juniors,
            socials=pricing.socials,
            member_breakdown=self.build_breakdown(classifications, adults, juniors, pricing, config),
            debug=PricingDebug(
                adult_sum_pennies=pricing.adult_sum_pennies,
                adult_total_pennies=adult_total,
                junior_sum_pennies=juniors.annual_pennies,
                social_sum_pennies=pricing.social_sum_pennies,
                adult_count=pricing.adult_count,
                adult_bundle_age_count=pricing.adult_bundle_age_count,
                junior_count=pricing.junior_count,
                social_count=pricing.social_count,
                unclassified_count=len(pricing.unclassified),
            ),
        )

        logger.debug(
            f"[{self.pricing_model.value}] season {season_year}: {len(members)} member(s), "
            f"total={result.total_pennies}"
        )
        return result

    @abstractmethod
    def decide_adults(self, pricing: BandPricing, config: ClubPricingConfig) -> AdultBundleDecision:
        pass

    @abstractmethod
    def price_juniors(self, pricing: BandPricing, config: ClubPricingConfig) -> JuniorBundle:
        pass

    def junior_breakdown(self, juniors: JuniorBundle, config: ClubPricingConfig) -> Tuple[int, bool, str]:
        """(price, covered_by_junior_bundle, note) for one junior"""
        return 0, True, JUNIOR_BUNDLE_NOTES.get(juniors.type, "")

    def build_breakdown(
        self,
        classifications: List[MemberClassification],
        adults: List[AdultPricingItem],
        juniors: JuniorBundle,
        pricing: BandPricing,
        config: ClubPricingConfig,
    ) -> List[MemberBreakdownItem]:
        """One line per input member, in input order"""
        adults_by_id = {a.member_id: a for a in adults}
        socials_by_id = {s.member_id: s for s in pricing.socials}
        breakdown = []

        for c in classifications:
            item = MemberBreakdownItem(
                member_id=c.member_id,
                category=c.category,
                band=c.band,
                age_on_cutoff=c.age_on_cutoff,
                note=c.note,
            )

            if c.category == MemberCategory.ADULT:
                adult = adults_by_id[c.member_id]
                item.price_pennies = adult.annual_pennies
                item.covered_by_adult_bundle = adult.covered_by_adult_bundle
                if adult.covered_by_adult_bundle:
                    item.note = "Covered by adult bundle"
                else:
                    item.note = f"Adult player ({ADULT_BAND_LABELS[adult.band]})"

            elif c.category == MemberCategory.JUNIOR:
                price, covered, note = self.junior_breakdown(juniors, config)
                item.price_pennies = price
                item.covered_by_junior_bundle = covered
                item.note = note

            elif c.category == MemberCategory.SOCIAL:
                item.price_pennies = socials_by_id[c.member_id].annual_pennies
                item.note = "Social / parent supporter"

            breakdown.append(item)

        return breakdown


class BundledPricingStrategy(PricingStrategy):
    """Banded prices with the adult bundle and junior single/multi bundle"""

    pricing_model = PricingModel.BUNDLED

    def decide_adults(self, pricing: BandPricing, config: ClubPricingConfig) -> AdultBundleDecision:
        return decide_adult_bundle(pricing.adults, pricing.junior_count, config)

    def price_juniors(self, pricing: BandPricing, config: ClubPricingConfig) -> JuniorBundle:
        return junior_bundle(pricing.junior_ids, config)


class FlatPricingStrategy(PricingStrategy):
    """No bundles: adults by band, juniors per head, socials at the social price"""

    pricing_model = PricingModel.FLAT

    def decide_adults(self, pricing: BandPricing, config: ClubPricingConfig) -> AdultBundleDecision:
        total = pricing.adult_sum_pennies
        return AdultBundleDecision(
            eligible=False,
            applied=False,
            bundle_price_pennies=0,
            individual_total_pennies=total,
            adult_total_pennies=total,
            reason="flat pricing",
        )

    def price_juniors(self, pricing: BandPricing, config: ClubPricingConfig) -> JuniorBundle:
        return per_junior_pricing(pricing.junior_ids, config)

    def junior_breakdown(self, juniors: JuniorBundle, config: ClubPricingConfig) -> Tuple[int, bool, str]:
        return config.junior_single_price_pennies, False, "Junior membership (flat pricing)"


class FamilyCapPricingStrategy(BundledPricingStrategy):
    """Reserved model; priced exactly as bundled until a family cap is defined"""

    pricing_model = PricingModel.FAMILY_CAP
