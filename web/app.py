"""FastAPI application factory for the OTP gateway."""

import asyncio
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src import __version__
from src.constants import Timeouts
from src.core.config.settings import GatewaySettings, get_settings
from src.core.environment import Environment
from src.core.exceptions import OTPGatewayError
from src.middleware import CorrelationMiddleware, ErrorHandlerMiddleware
from src.services.form_relay import FormRelay
from src.services.otp_delivery import OTPDelivery
from src.services.otp_manager import OTPSessionManager, create_otp_manager
from web.exception_handlers import (
    gateway_exception_handler,
    http_exception_handler,
    rate_limit_exceeded_handler,
    validation_exception_handler,
)
from web.middleware import SecurityHeadersMiddleware
from web.routes import health_router, limiter, otp_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Handles:
    - Starting the periodic session sweep on startup
    - Stopping the sweep and closing provider/relay sessions on shutdown
    """
    manager: OTPSessionManager = app.state.otp_manager

    logger.info("OTP gateway starting up...")
    await manager.start()

    yield

    logger.info("OTP gateway shutting down...")
    try:
        await asyncio.wait_for(manager.close(), timeout=Timeouts.CLEANUP_SHUTDOWN)
    except asyncio.TimeoutError:
        logger.warning(f"OTP manager shutdown timed out after {Timeouts.CLEANUP_SHUTDOWN}s")
    except Exception as e:
        logger.error(f"Error shutting down OTP manager: {e}")


def log_security_warnings(settings: GatewaySettings) -> List[str]:
    """
    Log configuration that is acceptable for local work but risky elsewhere.

    Args:
        settings: Application settings

    Returns:
        The warnings that were logged
    """
    warnings: List[str] = []

    if settings.expose_otp_codes:
        warnings.append(f"OTP codes are returned in API responses (ENV={settings.env})")
    if settings.otp_provider == "console":
        warnings.append("OTP_PROVIDER=console: codes are only written to the log")
    if not settings.form_relay_url:
        warnings.append("FORM_RELAY_URL is not set: verified forms are not forwarded")
    if not settings.rate_limit_enabled:
        warnings.append("Rate limiting is disabled")

    for warning in warnings:
        logger.warning(f"SECURITY: {warning}")

    return warnings


def create_app(
    settings: Optional[GatewaySettings] = None,
    delivery: Optional[OTPDelivery] = None,
    form_relay: Optional[FormRelay] = None,
    run_security_validation: bool = True,
) -> FastAPI:
    """
    Factory function to create FastAPI application instance.

    Args:
        settings: Application settings (default: get_settings())
        delivery: OTP delivery override (default: configured provider)
        form_relay: Form relay override (default: configured endpoint)
        run_security_validation: Whether to log security warnings (default: True)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    _is_dev = Environment.is_non_production(settings.env)

    app = FastAPI(
        title="OTP Gateway API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if _is_dev else None,
        redoc_url="/redoc" if _is_dev else None,
        openapi_url="/openapi.json" if _is_dev else None,
        description="""
## OTP Gateway

Phone number verification for Indian mobile numbers.

1. `POST /api/send-otp` sends a 6-digit code and returns a `sessionId`.
2. `POST /api/verify-otp` checks the code (3 attempts, valid for 10 minutes).
3. `POST /api/submit-form` forwards a form for the verified number once,
   within 30 minutes of verification.

Errors are returned as RFC 7807 problem documents.
    """,
        openapi_tags=[
            {"name": "otp", "description": "OTP issuance, verification and form submission"},
            {"name": "health", "description": "Service health"},
        ],
    )

    if run_security_validation:
        log_security_warnings(settings)

    app.state.otp_manager = create_otp_manager(
        settings, delivery=delivery, form_relay=form_relay
    )

    # Configure middleware (last added runs first)
    # 1. Error handling middleware (innermost catch-all)
    app.add_middleware(ErrorHandlerMiddleware)

    # 2. Security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    # 3. Correlation ID middleware for request tracking
    app.add_middleware(CorrelationMiddleware)

    # 4. Configure CORS
    allowed_origins = settings.get_cors_origins()
    if not allowed_origins and not _is_dev:
        raise RuntimeError(
            "CRITICAL: No valid CORS origins configured for production. "
            "Set CORS_ALLOWED_ORIGINS in .env (e.g., 'https://yourdomain.com')."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "X-Requested-With", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=3600,
    )

    # Rate limiting (per client IP)
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OTPGatewayError, gateway_exception_handler)

    app.include_router(health_router)  # /health
    app.include_router(otp_router)  # /api/*

    logger.info(f"OTP gateway app created (env={settings.env}, provider={settings.otp_provider})")
    return app
