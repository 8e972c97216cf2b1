"""Health check endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter

from lamachine import __version__
from lamachine.api.dependencies import SettingsDep
from lamachine.api.models.health import HealthResponse
from lamachine.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Liveness check, with the configured generation model."""
    logger.debug("health_check_request")
    return HealthResponse(
        status="healthy",
        version=__version__,
        model=settings.providers.llm.model,
        timestamp=datetime.now(UTC),
    )
