"""FastAPI routers."""

from fhir_gateway.routers.health import router as health_router

__all__ = ["health_router"]
