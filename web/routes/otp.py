"""OTP issuance, verification and verified form submission routes."""

from fastapi import APIRouter, Depends, Request
from loguru import logger
from slowapi import Limiter

from src.core.config.settings import get_settings
from src.services.otp_manager import OTPSessionManager
from src.utils.masking import mask_phone, mask_session_id
from web.dependencies import get_otp_manager
from web.ip_utils import get_real_client_ip
from web.models import (
    OTPIssuedResponse,
    ResendOTPRequest,
    SendOTPRequest,
    SessionResponse,
    SubmitFormRequest,
    SubmitFormResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)

router = APIRouter(prefix="/api", tags=["otp"])
limiter = Limiter(key_func=get_real_client_ip)


# send-otp and resend-otp draw from one per-client budget
def _otp_rate_limit() -> str:
    return get_settings().otp_rate_limit


def _general_rate_limit() -> str:
    return get_settings().general_rate_limit


@router.post("/send-otp", response_model=OTPIssuedResponse, response_model_exclude_none=True)
@limiter.shared_limit(_otp_rate_limit, scope="otp")
async def send_otp(
    request: Request,
    payload: SendOTPRequest,
    manager: OTPSessionManager = Depends(get_otp_manager),
) -> OTPIssuedResponse:
    """
    Send a one-time code to an Indian mobile number.

    Args:
        request: FastAPI request object (required for rate limiter)
        payload: Phone number to verify
        manager: OTP session manager

    Returns:
        Session id for the verify step
    """
    issued = await manager.create(payload.phone_number)
    logger.info(f"OTP sent to {mask_phone(issued.phone_number)}")
    return OTPIssuedResponse(
        message="OTP sent successfully",
        session_id=issued.session_id,
        otp_code=issued.otp_code,
    )


@router.post("/verify-otp", response_model=VerifyOTPResponse)
@limiter.limit(_general_rate_limit)
async def verify_otp(
    request: Request,
    payload: VerifyOTPRequest,
    manager: OTPSessionManager = Depends(get_otp_manager),
) -> VerifyOTPResponse:
    """
    Verify a code against its session.

    Args:
        request: FastAPI request object (required for rate limiter)
        payload: Session id and 6-digit code
        manager: OTP session manager

    Returns:
        The verified canonical phone number
    """
    phone_number = await manager.verify(payload.session_id, payload.otp_code)
    return VerifyOTPResponse(phone_number=phone_number)


@router.post("/resend-otp", response_model=OTPIssuedResponse, response_model_exclude_none=True)
@limiter.shared_limit(_otp_rate_limit, scope="otp")
async def resend_otp(
    request: Request,
    payload: ResendOTPRequest,
    manager: OTPSessionManager = Depends(get_otp_manager),
) -> OTPIssuedResponse:
    """
    Issue a new code, replacing the pending session named by ``sessionId``.

    Args:
        request: FastAPI request object (required for rate limiter)
        payload: Phone number and optional previous session id
        manager: OTP session manager

    Returns:
        Session id of the replacement session
    """
    issued = await manager.resend(payload.phone_number, payload.session_id)
    logger.info(f"OTP resent to {mask_phone(issued.phone_number)}")
    return OTPIssuedResponse(
        message="OTP resent successfully",
        session_id=issued.session_id,
        otp_code=issued.otp_code,
    )


@router.post("/submit-form", response_model=SubmitFormResponse)
@limiter.limit(_general_rate_limit)
async def submit_form(
    request: Request,
    payload: SubmitFormRequest,
    manager: OTPSessionManager = Depends(get_otp_manager),
) -> SubmitFormResponse:
    """
    Forward a form for a verified phone number and consume the session.

    Args:
        request: FastAPI request object (required for rate limiter)
        payload: Form fields plus the verified session
        manager: OTP session manager

    Returns:
        Submission timestamp
    """
    submitted_at = await manager.submit_form(
        payload.session_id, payload.name, payload.email, payload.phone_number
    )
    logger.info(f"Form submitted for session {mask_session_id(payload.session_id)}")
    return SubmitFormResponse(submitted_at=submitted_at.isoformat())


@router.get("/session/{session_id}", response_model=SessionResponse)
@limiter.limit(_general_rate_limit)
async def get_session(
    request: Request,
    session_id: str,
    manager: OTPSessionManager = Depends(get_otp_manager),
) -> SessionResponse:
    """Get a redacted view of a live session."""
    view = manager.inspect(session_id)
    return SessionResponse(session=view.to_dict())
