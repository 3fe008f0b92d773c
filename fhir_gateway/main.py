"""FHIR Gateway API - authenticated, role-checked access to a FHIR store."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from fhir_gateway.config import settings
from fhir_gateway.database import Database
from fhir_gateway.core.logging import logger
from fhir_gateway.features.auth.router import router as auth_router
from fhir_gateway.features.patients.router import router as patients_router
from fhir_gateway.features.data_scientist.router import router as data_scientist_router
from fhir_gateway.routers import health_router
from fhir_gateway.services.fhir_service import FhirService


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI application."""
    # Startup
    logger.info("Starting FHIR Gateway API...")
    await Database.connect_db()

    app.state.fhir_service = FhirService()
    logger.info(f"Using FHIR store at {settings.FHIR_BASE_URL}")

    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.fhir_service.aclose()
    await Database.close_db()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Authenticated gateway for onboarding and reading FHIR clinical data",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(auth_router, prefix=settings.API_V1_PREFIX)
app.include_router(patients_router, prefix=settings.API_V1_PREFIX)
app.include_router(data_scientist_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    uvicorn.run(
        "fhir_gateway.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
