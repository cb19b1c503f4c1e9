"""
Pytest configuration and fixtures for household pricing tests
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pricing.config import DEFAULT_PRICING_CONFIG
from pricing.schemas import HouseholdMember, SubscriptionRecord


SEASON = 2026  # cutoff 2025-09-01


@pytest.fixture(scope="session")
def season_year():
    return SEASON


@pytest.fixture(scope="session")
def default_config():
    """Default club pricing config (1 September cutoff)"""
    return DEFAULT_PRICING_CONFIG


@pytest.fixture
def make_member():
    """HouseholdMember factory"""
    def _make(member_id, date_of_birth, gender="male", role="player"):
        return HouseholdMember(
            id=member_id,
            date_of_birth=date_of_birth,
            gender=gender,
            role=role,
        )
    return _make


@pytest.fixture
def make_subscription():
    """SubscriptionRecord factory for household h1, season 2026"""
    def _make(sub_id, plan_id, member_id=None, status="pending", amount=0, **kwargs):
        data = {
            "id": sub_id,
            "club_id": "club-1",
            "plan_id": plan_id,
            "member_id": member_id,
            "household_id": "h1",
            "status": status,
            "membership_year": SEASON,
            "amount_pennies": amount,
        }
        data.update(kwargs)
        return SubscriptionRecord(**data)
    return _make


@pytest.fixture
def family_members(make_member):
    """Two 30-year-old adults (male + female) and one 10-year-old junior"""
    return [
        make_member("dad", "1995-01-01", "male"),
        make_member("mum", "1995-03-01", "female"),
        make_member("kid", "2015-06-01", "female"),
    ]
