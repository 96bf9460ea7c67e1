"""Last-resort error handling middleware for the OTP gateway."""

import traceback
from typing import Callable, cast

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.exceptions import OTPGatewayError, UpstreamError


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catch exceptions that escaped the route exception handlers.

    Gateway errors keep their status code; anything else becomes a generic
    RFC 7807 500 response without internal details.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            response = await call_next(request)
            return cast(Response, response)
        except OTPGatewayError as e:
            return self._handle_gateway_error(e, request)
        except Exception as e:
            return self._handle_unexpected_error(e, request)

    def _handle_gateway_error(self, error: OTPGatewayError, request: Request) -> JSONResponse:
        logger.error(
            f"Gateway error: {error.__class__.__name__}: {error.message} "
            f"(recoverable={error.recoverable}, path={request.url.path})"
        )

        status_code = error._get_http_status()
        detail = error.public_message if isinstance(error, UpstreamError) else error.message

        return JSONResponse(
            status_code=status_code,
            content={
                "type": error.error_type_uri,
                "title": error.title,
                "status": status_code,
                "detail": detail,
                "instance": request.url.path,
                "success": False,
            },
            media_type="application/problem+json",
        )

    def _handle_unexpected_error(self, error: Exception, request: Request) -> JSONResponse:
        """Must not leak internal details."""
        logger.error(
            f"Unexpected error on {request.url.path}: {error}\n{traceback.format_exc()}"
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "type": "urn:otpgateway:error:internal-server",
                "title": "Internal Server Error",
                "status": 500,
                "detail": "Internal server error",
                "instance": request.url.path,
                "success": False,
            },
            media_type="application/problem+json",
        )
