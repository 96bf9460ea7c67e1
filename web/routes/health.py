"""Health check route for the OTP gateway."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.services.otp_manager import OTPSessionManager
from web.dependencies import get_otp_manager
from web.models import HealthResponse

router = APIRouter(tags=["health"])


def get_version() -> str:
    """
    Get application version from centralized source.

    Returns:
        Version string
    """
    from src import __version__

    return __version__


@router.get("/health", response_model=HealthResponse)
async def health_check(manager: OTPSessionManager = Depends(get_otp_manager)) -> HealthResponse:
    """
    Health check endpoint for monitoring and container orchestration.

    Returns:
        Liveness status with session counts and sweeper state
    """
    health = manager.health_check()
    return HealthResponse(
        status=health["status"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=get_version(),
        active_sessions=health["active_sessions"],
        pending_sessions=health["pending_sessions"],
        verified_sessions=health["verified_sessions"],
        cleanup_running=health["cleanup_running"],
    )
