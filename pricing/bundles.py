"""
Bundle optimizer

- Adult bundle: N bundle-age adults for one price, taken only when cheaper
- Junior bundle: one household charge for all juniors (single / multi)
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from loguru import logger

from .bands import PricedAdult
from .schemas import ClubPricingConfig, JuniorBundle, JuniorBundleType


@dataclass
class AdultBundleDecision:
    """Outcome of the adult bundle check"""
    eligible: bool
    applied: bool
    bundle_price_pennies: int
    covered_member_ids: List[str] = field(default_factory=list)
    individual_total_pennies: int = 0   # every adult at band price
    bundle_total_pennies: int = 0       # bundle + uncovered adults (0 if not eligible)
    adult_total_pennies: int = 0        # what the household pays for adults
    reason: str = ""


def adult_bundle_eligibility(
    adults: List[PricedAdult],
    junior_count: int,
    config: ClubPricingConfig,
) -> Tuple[bool, str]:
    """
    Check the adult bundle preconditions

    Returns:
        (eligible, reason) - reason explains the first failed condition
    """
    if not config.enable_adult_bundle:
        return False, "adult bundle disabled"

    bundle_age_count = sum(1 for a in adults if a.bundle_age)
    if bundle_age_count < config.min_adults_for_bundle:
        return False, (
            f"{bundle_age_count} adult(s) aged {config.adult_bundle_min_age}+, "
            f"{config.min_adults_for_bundle} required"
        )

    if config.require_junior_for_adult_bundle and junior_count < 1:
        return False, "no junior in household"

    if config.adult_bundle_price_pennies <= 0:
        return False, "no adult bundle price configured"

    return True, "eligible"


def select_bundle_candidates(adults: List[PricedAdult], count: int) -> List[PricedAdult]:
    """Most expensive bundle-age adults first; equal prices keep input order"""
    bundle_age = [a for a in adults if a.bundle_age]
    ranked = sorted(bundle_age, key=lambda a: -a.annual_pennies)
    return ranked[:count]


def decide_adult_bundle(
    adults: List[PricedAdult],
    junior_count: int,
    config: ClubPricingConfig,
) -> AdultBundleDecision:
    individual_total = sum(a.annual_pennies for a in adults)
    eligible, reason = adult_bundle_eligibility(adults, junior_count, config)

    decision = AdultBundleDecision(
        eligible=eligible,
        applied=False,
        bundle_price_pennies=config.adult_bundle_price_pennies,
        individual_total_pennies=individual_total,
        adult_total_pennies=individual_total,
        reason=reason,
    )
    if not eligible:
        logger.debug(f"Adult bundle not eligible: {reason}")
        return decision

    candidates = select_bundle_candidates(adults, config.min_adults_for_bundle)
    candidate_ids = {a.member_id for a in candidates}
    uncovered_total = sum(a.annual_pennies for a in adults if a.member_id not in candidate_ids)
    bundle_total = config.adult_bundle_price_pennies + uncovered_total
    decision.bundle_total_pennies = bundle_total

    if bundle_total < individual_total:
        decision.applied = True
        decision.covered_member_ids = [a.member_id for a in candidates]
        decision.adult_total_pennies = bundle_total
        decision.reason = "bundle cheaper than individual prices"
    else:
        decision.reason = "individual prices not more than bundle"

    logger.debug(
        f"Adult bundle: individual={individual_total} bundle={bundle_total} "
        f"applied={decision.applied}"
    )
    return decision


def junior_bundle(junior_ids: List[str], config: ClubPricingConfig) -> JuniorBundle:
    """0 juniors -> none, 1 -> single price, 2+ -> multi price once"""
    if not junior_ids:
        return JuniorBundle()

    if len(junior_ids) == 1:
        return JuniorBundle(
            type=JuniorBundleType.SINGLE,
            annual_pennies=config.junior_single_price_pennies,
            covered_junior_ids=list(junior_ids),
        )

    return JuniorBundle(
        type=JuniorBundleType.MULTI,
        annual_pennies=config.junior_multi_price_pennies,
        covered_junior_ids=list(junior_ids),
    )


def per_junior_pricing(junior_ids: List[str], config: ClubPricingConfig) -> JuniorBundle:
    """Flat pricing: every junior at the single price, one household charge"""
    if not junior_ids:
        return JuniorBundle()

    return JuniorBundle(
        type=JuniorBundleType.PER_JUNIOR,
        annual_pennies=config.junior_single_price_pennies * len(junior_ids),
        covered_junior_ids=list(junior_ids),
    )
