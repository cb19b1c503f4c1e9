"""
Pricing engine exceptions
"""
from typing import Any, Dict, List, Optional


class PricingError(Exception):
    """Base exception for pricing engine errors"""
    pass


class PricingConfigError(PricingError):
    """Club pricing configuration could not be loaded"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class MissingPlanMappingError(PricingError):
    """No billing plan is mapped for one or more charge kinds"""

    def __init__(self, charge_kinds: List[str], club_id: Optional[str], season_year: int):
        self.charge_kinds = charge_kinds
        self.club_id = club_id
        self.season_year = season_year
        kinds = ", ".join(charge_kinds)
        super().__init__(
            f"No plan mapping for charge kind(s) {kinds} "
            f"(club_id={club_id}, year={season_year})"
        )
