"""API router aggregation."""

from fastapi import APIRouter

from leazr.api.ambassadors import router as ambassadors_router
from leazr.api.auth import router as auth_router
from leazr.api.commissions import router as commissions_router
from leazr.api.contracts import router as contracts_router
from leazr.api.health import router as health_router
from leazr.api.leasers import router as leasers_router
from leazr.api.offers import router as offers_router
from leazr.api.pricing import router as pricing_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(leasers_router)
api_router.include_router(commissions_router)
api_router.include_router(ambassadors_router)
api_router.include_router(pricing_router)
api_router.include_router(offers_router)
api_router.include_router(contracts_router)

__all__ = ["api_router"]
