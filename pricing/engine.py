"""
Household pricing engine

Entry point for pricing a household: picks the strategy for the club's
`pricing_model`, runs it and (optionally) splits the result into charges.

CLI:
    python -m pricing.engine --household household.json [--season 2026] [--config club.json] [--charges]
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from loguru import logger

from .charges import build_charge_items
from .config import DEFAULT_PRICING_CONFIG, coerce_pricing_config, get_pricing_settings
from .schemas import ChargeLineItem, ClubPricingConfig, HouseholdMember, PricingModel, PricingResult
from .strategies import (
    BundledPricingStrategy,
    FamilyCapPricingStrategy,
    FlatPricingStrategy,
    PricingStrategy,
)


PRICING_STRATEGIES: Dict[PricingModel, Type[PricingStrategy]] = {
    PricingModel.BUNDLED: BundledPricingStrategy,
    PricingModel.FLAT: FlatPricingStrategy,
    PricingModel.FAMILY_CAP: FamilyCapPricingStrategy,
}

MemberInput = Union[HouseholdMember, Mapping[str, Any]]
ConfigInput = Union[ClubPricingConfig, Mapping[str, Any], None]


def get_pricing_strategy(model: Union[PricingModel, str]) -> PricingStrategy:
    """Strategy instance for a pricing model (unknown models raise ValueError)"""
    model = PricingModel(model)
    return PRICING_STRATEGIES[model]()


def to_members(members: Sequence[MemberInput]) -> List[HouseholdMember]:
    return [
        m if isinstance(m, HouseholdMember) else HouseholdMember.model_validate(m)
        for m in members
    ]


def calculate_club_pricing(
    members: Sequence[MemberInput],
    season_year: Optional[int] = None,
    config: ConfigInput = None,
) -> PricingResult:
    """
    Price a household for one season

    Args:
        members: HouseholdMember models or raw member dicts
        season_year: defaults to settings.default_season_year
        config: club config (model or partial dict); None -> DEFAULT_PRICING_CONFIG
    """
    if season_year is None:
        season_year = get_pricing_settings().default_season_year
    club_config = DEFAULT_PRICING_CONFIG if config is None else coerce_pricing_config(config)

    strategy = get_pricing_strategy(club_config.pricing_model)
    logger.debug(f"Pricing season {season_year} with {type(strategy).__name__}")

    return strategy.calculate(to_members(members), season_year, club_config)


def price_household(
    members: Sequence[MemberInput],
    season_year: Optional[int] = None,
    config: ConfigInput = None,
) -> Tuple[PricingResult, List[ChargeLineItem]]:
    """Pricing result plus its charge line items"""
    result = calculate_club_pricing(members, season_year, config)
    return result, build_charge_items(result)


def format_pennies(pennies: int) -> str:
    pounds, pence = divmod(pennies, 100)
    return f"£{pounds:,}.{pence:02d}"


def print_pricing_summary(result: PricingResult, charges: Optional[List[ChargeLineItem]] = None):
    """Pricing summary table"""
    print(f"\n{'='*60}")
    print(f" Season {result.season_year} ({result.pricing_model.value}), cutoff {result.cutoff_date.isoformat()}")
    print(f"{'='*60}")
    print(f"{'Member':<12} {'Category':<13} {'Age':>4} {'Price':>10}  Note")
    print(f"{'-'*60}")

    for item in result.member_breakdown:
        print(
            f"{item.member_id[:12]:<12} {item.category.value:<13} {item.age_on_cutoff:>4} "
            f"{format_pennies(item.price_pennies):>10}  {item.note}"
        )

    print(f"{'-'*60}")
    if result.adult_bundle_applied:
        print(f"Adult bundle: {format_pennies(result.adult_bundle_price_pennies)}")
    if result.junior_bundle.annual_pennies:
        print(f"Junior ({result.junior_bundle.type.value}): {format_pennies(result.junior_bundle.annual_pennies)}")
    print(f"Total: {format_pennies(result.total_pennies)}")

    if charges is not None:
        print(f"\n{'Charge':<24} {'Kind':<14} {'Annual':>10}  Label")
        print(f"{'-'*60}")
        for charge in charges:
            print(
                f"{charge.id[:24]:<24} {charge.kind.value:<14} "
                f"{format_pennies(charge.annual_pennies):>10}  {charge.label}"
            )


def load_household_file(path: str) -> Tuple[List[Dict[str, Any]], Optional[int], Optional[Dict[str, Any]]]:
    """
    Household JSON: a member list, or {"members": [...], "season_year": ..., "config": {...}}
    """
    with open(Path(path), "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        return data, None, None
    return data.get("members", []), data.get("season_year"), data.get("config")


# =====================================================
# CLI
# =====================================================

def main(argv: Optional[Sequence[str]] = None):
    import argparse

    parser = argparse.ArgumentParser(description="Household membership pricing calculator")
    parser.add_argument("--household", type=str, required=True, help="Household JSON file")
    parser.add_argument("--season", type=int, help="Season year (default: settings)")
    parser.add_argument("--config", type=str, help="Club pricing config JSON file")
    parser.add_argument("--charges", action="store_true", help="Also print charge line items")

    args = parser.parse_args(argv)

    members, season_year, config = load_household_file(args.household)
    if args.config:
        with open(args.config, "r", encoding="utf-8") as f:
            config = json.load(f)
    if args.season:
        season_year = args.season

    result, charges = price_household(members, season_year, config)
    print_pricing_summary(result, charges if args.charges else None)


if __name__ == "__main__":
    main()
