"""
Charge builder

Splits a PricingResult into billable line items. Ids are deterministic so that
repeated recalculation produces the same items.
"""
from typing import List

from .bands import ADULT_BAND_LABELS
from .schemas import ChargeKind, ChargeLineItem, JuniorBundle, JuniorBundleType, PricingResult


def junior_charge_label(bundle: JuniorBundle) -> str:
    if bundle.type == JuniorBundleType.SINGLE:
        return "Junior membership (one junior)"
    if bundle.type == JuniorBundleType.MULTI:
        return "Junior bundle (2+ juniors)"
    return f"Junior memberships ({len(bundle.covered_junior_ids)} juniors)"


def build_charge_items(result: PricingResult) -> List[ChargeLineItem]:
    """
    PricingResult -> charge line items

    Order: adult bundle, adult top-ups, junior charge, socials.
    Adults covered by the bundle (price 0) get no item of their own.
    """
    items: List[ChargeLineItem] = []

    if result.adult_bundle_applied:
        items.append(ChargeLineItem(
            id="adult-bundle",
            kind=ChargeKind.ADULT_BUNDLE,
            label=f"Adult bundle ({len(result.adult_bundle_member_ids)} adults)",
            member_id=None,
            annual_pennies=result.adult_bundle_price_pennies,
        ))

    for adult in result.adults:
        if adult.annual_pennies <= 0:
            continue
        items.append(ChargeLineItem(
            id=f"adult-{adult.member_id}",
            kind=ChargeKind.ADULT_TOPUP,
            label=f"Adult player ({ADULT_BAND_LABELS[adult.band]})",
            member_id=adult.member_id,
            annual_pennies=adult.annual_pennies,
        ))

    junior = result.junior_bundle
    if junior.type != JuniorBundleType.NONE:
        items.append(ChargeLineItem(
            id="junior-bundle",
            kind=ChargeKind.JUNIOR_BUNDLE,
            label=junior_charge_label(junior),
            member_id=None,
            annual_pennies=junior.annual_pennies,
        ))

    for social in result.socials:
        items.append(ChargeLineItem(
            id=f"social-{social.member_id}",
            kind=ChargeKind.SOCIAL_ADULT,
            label="Social / parent supporter",
            member_id=social.member_id,
            annual_pennies=social.annual_pennies,
        ))

    return items
