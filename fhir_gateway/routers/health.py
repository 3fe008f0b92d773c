"""Health check endpoints."""

from fastapi import APIRouter

from fhir_gateway.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "fhir-gateway",
        "environment": settings.ENVIRONMENT,
    }
