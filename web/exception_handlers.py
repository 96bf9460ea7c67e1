"""RFC 7807 Problem Details exception handlers for FastAPI."""

from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from src.core.exceptions import OTPGatewayError, UpstreamError

PROBLEM_JSON = "application/problem+json"

_OTP_PATHS = frozenset({"/api/send-otp", "/api/resend-otp"})

_ERROR_TYPES = {
    400: "urn:otpgateway:error:bad-request",
    403: "urn:otpgateway:error:forbidden",
    404: "urn:otpgateway:error:not-found",
    405: "urn:otpgateway:error:method-not-allowed",
    409: "urn:otpgateway:error:conflict",
    410: "urn:otpgateway:error:gone",
    422: "urn:otpgateway:error:validation",
    429: "urn:otpgateway:error:rate-limit",
    500: "urn:otpgateway:error:internal-server",
    502: "urn:otpgateway:error:upstream-unavailable",
}

_ERROR_TITLES = {
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    410: "Gone",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
}


def _problem(
    request: Request, status_code: int, detail: str, type_uri: str, title: str, **extra: Any
) -> Dict[str, Any]:
    # success/message mirror the JSON envelope used by successful responses
    content: Dict[str, Any] = {
        "type": type_uri,
        "title": title,
        "status": status_code,
        "detail": detail,
        "instance": request.url.path,
        "success": False,
        "message": detail,
    }
    content.update(extra)
    return content


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert HTTPException (including unknown routes) to RFC 7807 format."""
    status_code = exc.status_code
    if status_code == 404 and exc.detail == "Not Found":
        detail = "Endpoint not found"
    else:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    return JSONResponse(
        status_code=status_code,
        content=_problem(
            request,
            status_code,
            detail,
            _ERROR_TYPES.get(status_code, f"urn:otpgateway:error:http-{status_code}"),
            _ERROR_TITLES.get(status_code, "Error"),
        ),
        headers=getattr(exc, "headers", None) or {},
        media_type=PROBLEM_JSON,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert Pydantic validation errors to RFC 7807 format."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors[field] = error["msg"].removeprefix("Value error, ")

    # First failing field becomes the headline message
    detail = next(iter(errors.values()), "Validation failed")

    return JSONResponse(
        status_code=422,
        content=_problem(
            request,
            422,
            detail,
            _ERROR_TYPES[422],
            _ERROR_TITLES[422],
            errors=errors,
        ),
        media_type=PROBLEM_JSON,
    )


async def gateway_exception_handler(request: Request, exc: OTPGatewayError) -> JSONResponse:
    """
    Convert gateway errors to RFC 7807 format.

    Client input errors are reported with their message and details.
    Upstream failures are logged in full and reported generically.
    """
    status_code = exc._get_http_status()

    if isinstance(exc, UpstreamError):
        logger.error(
            f"{exc.__class__.__name__} on {request.url.path}: {exc.message} ({exc.details})"
        )
        content = _problem(
            request, status_code, exc.public_message, exc.error_type_uri, exc.title
        )
    else:
        logger.info(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
        content = _problem(
            request, status_code, exc.message, exc.error_type_uri, exc.title, **exc.details
        )

    return JSONResponse(status_code=status_code, content=content, media_type=PROBLEM_JSON)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Convert slowapi rate limit rejections to RFC 7807 format with Retry-After."""
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")

    if request.url.path in _OTP_PATHS:
        detail = "Too many OTP requests. Please try again later."
    else:
        detail = "Too many requests. Please try again later."

    response = JSONResponse(
        status_code=429,
        content=_problem(request, 429, detail, _ERROR_TYPES[429], _ERROR_TITLES[429]),
        media_type=PROBLEM_JSON,
    )
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if view_rate_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_rate_limit)
    return response
