"""
API Router
Combines all console endpoint routers
"""
from fastapi import APIRouter
from voiceai_console.api.v1.endpoints import (
    auth,
    agents,
    leads,
    calls,
    calliq,
    settings,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(agents.router)
api_router.include_router(leads.router)
api_router.include_router(calls.router)

# Sales call analytics
api_router.include_router(calliq.router)

api_router.include_router(settings.router)
