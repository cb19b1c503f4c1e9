"""
Club fees main - pricing API server / household pricing calculator
"""
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from pricing.config import PricingSettings, get_pricing_settings


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(settings: Optional[PricingSettings] = None):
    """stderr sink plus an optional daily rotating file sink"""
    settings = settings or get_pricing_settings()

    logger.remove()
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=settings.log_level.upper()
    )
    if settings.log_dir:
        logger.add(
            str(Path(settings.log_dir) / "pricing_{time:YYYY-MM-DD}.log"),
            rotation="1 day",
            retention="30 days",
            level="DEBUG"
        )


def main(argv: Optional[List[str]] = None):
    """Entry point. Options other than --mode are passed to the price calculator."""
    import argparse

    parser = argparse.ArgumentParser(description="Household membership pricing")
    parser.add_argument(
        "--mode",
        choices=["serve", "price"],
        default="serve",
        help="Run mode"
    )
    args, rest = parser.parse_known_args(argv)

    settings = get_pricing_settings()
    configure_logging(settings)

    if args.mode == "serve":
        import uvicorn

        logger.info(f"Starting pricing API on {settings.api_host}:{settings.api_port}")
        uvicorn.run(
            "app.server:app",
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower()
        )

    elif args.mode == "price":
        from pricing.engine import main as price_main

        price_main(rest)


if __name__ == "__main__":
    main()
