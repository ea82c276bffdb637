from fastapi import APIRouter

from app.features.verification.routes.verification import router as verification_router

api_router = APIRouter()

# Register all feature routes
api_router.include_router(verification_router)
