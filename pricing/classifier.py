"""
Age / category classifier

Ages are "cricket ages": whole years on the club's cutoff date in the year
before the season (season 2026 with a 1 September cutoff -> 2025-09-01).
"""
import calendar
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Tuple

from .schemas import (
    AdultBand,
    ClubPricingConfig,
    Gender,
    HouseholdMember,
    MemberCategory,
    MemberRole,
    parse_date,
)


@dataclass
class MemberClassification:
    """Classifier output for one member"""
    member_id: str
    category: MemberCategory
    age_on_cutoff: int
    band: Optional[AdultBand] = None
    dob_known: bool = True
    note: str = ""

    @property
    def is_billable(self) -> bool:
        return self.category != MemberCategory.UNCLASSIFIED


def cutoff_date(season_year: int, config: ClubPricingConfig) -> date:
    """Cutoff date for a season; an out-of-range day is clamped to month end"""
    year = season_year - 1
    last_day = calendar.monthrange(year, config.cutoff_month)[1]
    return date(year, config.cutoff_month, min(config.cutoff_day, last_day))


def age_on_cutoff(dob: Any, cutoff: date) -> int:
    """
    Whole years between dob and cutoff

    Missing or unparsable dob -> 0.
    """
    dob = parse_date(dob)
    if dob is None:
        return 0

    age = cutoff.year - dob.year
    if (cutoff.month, cutoff.day) < (dob.month, dob.day):
        age -= 1
    return age


def adult_band(gender: Gender, age: int, config: ClubPricingConfig) -> AdultBand:
    """female -> female bands, every other sex -> male bands"""
    is_full = age >= config.adult_bundle_min_age
    if gender == Gender.FEMALE:
        return AdultBand.FEMALE_FULL if is_full else AdultBand.FEMALE_INTERMEDIATE
    return AdultBand.MALE_FULL if is_full else AdultBand.MALE_INTERMEDIATE


def _unclassified_note(member: HouseholdMember, age: int, config: ClubPricingConfig) -> str:
    if member.role == MemberRole.COACH:
        return "Coaches are not billed"
    if member.role == MemberRole.SUPPORTER:
        return f"Supporter aged {age} is under the adult age of {config.adult_min_age}"
    if member.role == MemberRole.PLAYER:
        return (
            f"Player aged {age} falls between junior (<= {config.junior_max_age}) "
            f"and adult (>= {config.adult_min_age}) ages"
        )
    return "Member type is not billed"


def classify_member(
    member: HouseholdMember,
    config: ClubPricingConfig,
    cutoff: date,
) -> MemberClassification:
    """
    Classify one member. Rules in order:

    1. player and age <= junior_max_age     -> junior
    2. supporter and age >= adult_min_age   -> social
    3. player and age >= adult_min_age      -> adult (with band)
    4. anything else                        -> unclassified (no charge)
    """
    age = age_on_cutoff(member.date_of_birth, cutoff)
    dob_known = member.date_of_birth is not None
    is_player = member.role == MemberRole.PLAYER
    is_supporter = member.role == MemberRole.SUPPORTER

    if is_player and age <= config.junior_max_age:
        return MemberClassification(member.id, MemberCategory.JUNIOR, age, dob_known=dob_known)

    if is_supporter and age >= config.adult_min_age:
        return MemberClassification(member.id, MemberCategory.SOCIAL, age, dob_known=dob_known)

    if is_player and age >= config.adult_min_age:
        return MemberClassification(
            member.id,
            MemberCategory.ADULT,
            age,
            band=adult_band(member.gender, age, config),
            dob_known=dob_known,
        )

    return MemberClassification(
        member.id,
        MemberCategory.UNCLASSIFIED,
        age,
        dob_known=dob_known,
        note=_unclassified_note(member, age, config),
    )


def classify_household(
    members: List[HouseholdMember],
    season_year: int,
    config: ClubPricingConfig,
) -> Tuple[date, List[MemberClassification]]:
    """Classify every member against the season cutoff, keeping input order"""
    cutoff = cutoff_date(season_year, config)
    return cutoff, [classify_member(m, config, cutoff) for m in members]
