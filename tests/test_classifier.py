"""
Unit tests for the age / category classifier
Tests: cutoff date, age on cutoff, member classification, input normalisation
"""

import pytest
from datetime import date, datetime

from pricing.classifier import (
    adult_band,
    age_on_cutoff,
    classify_household,
    classify_member,
    cutoff_date,
)
from pricing.config import DEFAULT_PRICING_CONFIG
from pricing.schemas import AdultBand, Gender, HouseholdMember, MemberCategory, MemberRole


CUTOFF = date(2025, 9, 1)


class TestCutoffDate:
    """Season cutoff date"""

    def test_cutoff_is_in_previous_year(self):
        assert cutoff_date(2026, DEFAULT_PRICING_CONFIG) == date(2025, 9, 1)

    def test_custom_cutoff(self):
        config = DEFAULT_PRICING_CONFIG.model_copy(update={"cutoff_month": 4, "cutoff_day": 15})
        assert cutoff_date(2026, config) == date(2025, 4, 15)

    def test_impossible_day_clamped_to_month_end(self):
        """Feb 30 -> last day of February"""
        config = DEFAULT_PRICING_CONFIG.model_copy(update={"cutoff_month": 2, "cutoff_day": 30})
        assert cutoff_date(2026, config) == date(2025, 2, 28)
        assert cutoff_date(2025, config) == date(2024, 2, 29)


class TestAgeOnCutoff:
    """Whole years on the cutoff date"""

    def test_birthday_before_cutoff(self):
        assert age_on_cutoff(date(1995, 1, 1), CUTOFF) == 30

    def test_birthday_on_cutoff_counts(self):
        assert age_on_cutoff(date(2010, 9, 1), CUTOFF) == 15

    def test_birthday_after_cutoff(self):
        assert age_on_cutoff(date(2010, 9, 2), CUTOFF) == 14

    def test_leap_day_birthday(self):
        assert age_on_cutoff(date(2008, 2, 29), CUTOFF) == 17

    def test_accepts_strings_and_datetimes(self):
        assert age_on_cutoff("1995-01-01", CUTOFF) == 30
        assert age_on_cutoff(datetime(1995, 1, 1, 12, 30), CUTOFF) == 30

    def test_missing_or_invalid_dob_is_zero(self):
        assert age_on_cutoff(None, CUTOFF) == 0
        assert age_on_cutoff("", CUTOFF) == 0
        assert age_on_cutoff("not-a-date", CUTOFF) == 0


class TestAdultBand:
    """female -> female bands, anything else -> male bands"""

    @pytest.mark.parametrize("gender,age,expected", [
        (Gender.MALE, 30, AdultBand.MALE_FULL),
        (Gender.MALE, 21, AdultBand.MALE_INTERMEDIATE),
        (Gender.FEMALE, 22, AdultBand.FEMALE_FULL),
        (Gender.FEMALE, 16, AdultBand.FEMALE_INTERMEDIATE),
        (Gender.OTHER, 40, AdultBand.MALE_FULL),
        (Gender.UNKNOWN, 18, AdultBand.MALE_INTERMEDIATE),
    ])
    def test_band(self, gender, age, expected):
        assert adult_band(gender, age, DEFAULT_PRICING_CONFIG) == expected


class TestClassifyMember:
    """Classification rules in order"""

    def _classify(self, make_member, dob, gender="male", role="player", config=DEFAULT_PRICING_CONFIG):
        return classify_member(make_member("m1", dob, gender, role), config, CUTOFF)

    def test_junior_player(self, make_member):
        c = self._classify(make_member, "2015-06-01")
        assert c.category == MemberCategory.JUNIOR
        assert c.age_on_cutoff == 10
        assert c.band is None

    def test_junior_boundary(self, make_member):
        """15 on cutoff is junior, 16 is adult"""
        assert self._classify(make_member, "2010-09-01").category == MemberCategory.JUNIOR
        c = self._classify(make_member, "2009-09-01")
        assert c.category == MemberCategory.ADULT
        assert c.band == AdultBand.MALE_INTERMEDIATE

    def test_full_band_boundary(self, make_member):
        assert self._classify(make_member, "2003-09-01").band == AdultBand.MALE_FULL
        assert self._classify(make_member, "2003-09-02").band == AdultBand.MALE_INTERMEDIATE

    def test_adult_supporter_is_social(self, make_member):
        c = self._classify(make_member, "1980-01-01", role="supporter")
        assert c.category == MemberCategory.SOCIAL
        assert c.is_billable

    def test_young_supporter_unclassified(self, make_member):
        c = self._classify(make_member, "2012-01-01", role="supporter")
        assert c.category == MemberCategory.UNCLASSIFIED
        assert not c.is_billable
        assert "Supporter aged 13" in c.note

    def test_coach_not_billed(self, make_member):
        c = self._classify(make_member, "1980-01-01", role="coach")
        assert c.category == MemberCategory.UNCLASSIFIED
        assert c.note == "Coaches are not billed"

    def test_plain_member_not_billed(self, make_member):
        c = self._classify(make_member, "1980-01-01", role="member")
        assert c.category == MemberCategory.UNCLASSIFIED
        assert c.note == "Member type is not billed"

    def test_player_in_age_gap(self, make_member):
        """junior_max_age < age < adult_min_age -> unclassified"""
        config = DEFAULT_PRICING_CONFIG.model_copy(update={"junior_max_age": 13})
        c = self._classify(make_member, "2011-01-01", config=config)
        assert c.age_on_cutoff == 14
        assert c.category == MemberCategory.UNCLASSIFIED
        assert "falls between junior" in c.note

    def test_missing_dob_player_priced_as_junior(self, make_member):
        c = self._classify(make_member, None)
        assert c.age_on_cutoff == 0
        assert c.category == MemberCategory.JUNIOR
        assert c.dob_known is False

    def test_missing_dob_supporter_unclassified(self, make_member):
        c = self._classify(make_member, "garbage", role="supporter")
        assert c.category == MemberCategory.UNCLASSIFIED
        assert c.dob_known is False


class TestClassifyHousehold:
    """Household classification"""

    def test_keeps_input_order(self, family_members):
        cutoff, classifications = classify_household(family_members, 2026, DEFAULT_PRICING_CONFIG)
        assert cutoff == CUTOFF
        assert [c.member_id for c in classifications] == ["dad", "mum", "kid"]
        assert [c.category for c in classifications] == [
            MemberCategory.ADULT,
            MemberCategory.ADULT,
            MemberCategory.JUNIOR,
        ]


class TestMemberNormalisation:
    """Loose member input -> HouseholdMember"""

    def test_member_type_alias(self):
        member = HouseholdMember.model_validate({
            "id": 7,
            "date_of_birth": "1990-05-05",
            "gender": "F",
            "member_type": "supporter",
        })
        assert member.id == "7"
        assert member.gender == Gender.FEMALE
        assert member.role == MemberRole.SUPPORTER

    def test_unparsable_dob_kept_as_none(self):
        member = HouseholdMember(id="x", date_of_birth="31/12/1990")
        assert member.date_of_birth is None
        assert member.gender == Gender.UNKNOWN
        assert member.role == MemberRole.OTHER

    def test_member_is_frozen(self):
        member = HouseholdMember(id="x")
        with pytest.raises(Exception):
            member.id = "y"
