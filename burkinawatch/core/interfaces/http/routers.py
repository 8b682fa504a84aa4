"""API router configuration."""

from fastapi import APIRouter

from burkinawatch.modules.feeds.interfaces.router import router as feeds_router
from burkinawatch.modules.geocoding.interfaces.router import router as geocoding_router

api_router = APIRouter()

# News, bulletins, events
api_router.include_router(feeds_router)

# Reverse geocoding
api_router.include_router(geocoding_router)
