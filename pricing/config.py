"""
Pricing configuration

- PricingSettings: process settings read from the environment / .env
- DEFAULT_PRICING_CONFIG: the club pricing config used when a club has none stored
- coerce_pricing_config: partial admin input -> validated ClubPricingConfig
"""
from functools import lru_cache
from typing import Any, Mapping, Optional

from loguru import logger
from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings

from .errors import PricingConfigError
from .schemas import ClubPricingConfig, PricingModel


class PricingSettings(BaseSettings):
    """Pricing service settings"""

    default_season_year: int = Field(default=2026, description="Season priced when none is given")

    # Logging
    log_level: str = Field(default="INFO", description="stderr log level")
    log_dir: Optional[str] = Field(default=None, description="Directory for rotating log files")

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8071

    class Config:
        env_prefix = "CLUBFEES_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_pricing_settings() -> PricingSettings:
    return PricingSettings()


# Rainhill-style banded pricing, 1 September cutoff (amounts in pennies)
DEFAULT_PRICING_CONFIG = ClubPricingConfig(
    pricing_model=PricingModel.BUNDLED,
    cutoff_month=9,
    cutoff_day=1,
    junior_max_age=15,
    adult_min_age=16,
    adult_bundle_min_age=22,
    enable_adult_bundle=True,
    require_junior_for_adult_bundle=True,
    min_adults_for_bundle=2,
    male_full_price_pennies=11500,          # £115
    male_intermediate_price_pennies=9000,   # £90
    female_full_price_pennies=8000,         # £80
    female_intermediate_price_pennies=8000, # £80
    junior_single_price_pennies=15600,      # £156
    junior_multi_price_pennies=24000,       # £240
    social_adult_price_pennies=4500,        # £45
    adult_bundle_price_pennies=15000,       # £150
)


def coerce_pricing_config(
    raw: Optional[Mapping[str, Any]],
    base: ClubPricingConfig = DEFAULT_PRICING_CONFIG,
) -> ClubPricingConfig:
    """
    Build a full config from a partial mapping

    Unknown keys are dropped and missing / null fields fall back to `base`.

    Raises:
        PricingConfigError: a supplied value is invalid (e.g. a negative or
            fractional price, cutoff month 13)
    """
    if isinstance(raw, ClubPricingConfig):
        return raw

    data = base.model_dump()
    ignored = []

    for key, value in (raw or {}).items():
        if key not in ClubPricingConfig.model_fields:
            ignored.append(key)
            continue
        if value is None:
            continue
        data[key] = value

    if ignored:
        logger.debug(f"Ignoring unknown pricing config fields: {', '.join(sorted(ignored))}")

    try:
        return ClubPricingConfig(**data)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "value": error.get("input"),
            }
            for error in e.errors()
        ]
        fields = ", ".join(err["field"] for err in errors)
        raise PricingConfigError(f"Invalid pricing config: {fields}", errors=errors) from e
