"""API Routes module"""
from fastapi import APIRouter

from .tokens import router as tokens_router
from .authorizations import router as authorizations_router

# Main API router
api_router = APIRouter()

api_router.include_router(tokens_router, prefix="/tokens", tags=["Access Tokens"])
api_router.include_router(authorizations_router, prefix="/authorizations", tags=["Authorizations"])

__all__ = ["api_router"]
