"""API route registration."""

from fastapi import APIRouter, FastAPI

from lamachine.observability.logging import get_logger

logger = get_logger(__name__)


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all routes.

    Returns:
        APIRouter with all v1 routes registered
    """
    router = APIRouter(prefix="/v1")

    from lamachine.api.routes.constraints import router as constraints_router
    from lamachine.api.routes.runs import router as runs_router

    router.include_router(constraints_router, tags=["Constraints"])
    router.include_router(runs_router, tags=["Runs"])

    logger.debug("v1_router_created", routes=["constraints", "runs"])

    return router


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.include_router(create_v1_router())

    # Health lives at root level
    from lamachine.api.routes.health import router as health_router

    app.include_router(health_router, tags=["Health"])

    logger.info("routes_registered")
