"""
Club Fees - FastAPI server
Household membership pricing API
Port: 8071 (CLUBFEES_API_PORT)

Stateless: households, members, subscriptions and rules arrive in request
bodies; nothing is read from or written to storage here.
"""
from fastapi import FastAPI
from loguru import logger
from dotenv import load_dotenv

from pricing.config import get_pricing_settings

# Household pricing module
from app.households import households_router, pricing_router

load_dotenv()

# FastAPI app
app = FastAPI(
    title="Club Fees",
    description="Household membership pricing engine",
    version="1.0.0"
)

# Pricing routers
app.include_router(pricing_router, prefix="/api")
app.include_router(households_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    settings = get_pricing_settings()
    logger.info(f"Pricing API ready (default season {settings.default_season_year})")


@app.get("/health")
async def health_check():
    """Health check"""
    settings = get_pricing_settings()
    return {
        "status": "healthy",
        "default_season_year": settings.default_season_year,
    }


# ==================== Server ====================

if __name__ == "__main__":
    import uvicorn

    settings = get_pricing_settings()
    uvicorn.run(
        "app.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
