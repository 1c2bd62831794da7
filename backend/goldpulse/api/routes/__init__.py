from fastapi import APIRouter

from goldpulse.api.routes import health, pulse, rates


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(pulse.router)
api_router.include_router(rates.router)
