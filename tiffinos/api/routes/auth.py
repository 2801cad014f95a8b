"""Authentication routes.

Provides OTP-based authentication endpoints:
- POST /auth/request-otp: Send OTP to the vendor's mobile number
- POST /auth/verify-otp: Verify OTP and get JWT token
"""
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_db
from tiffinos.api.middleware.error_handler import (
    AppException,
    BadRequestException,
    UnauthorizedException,
)
from tiffinos.lib.logging import get_logger
from tiffinos.services.auth_service import AuthService


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


# Request/Response Models
class RequestOTPRequest(BaseModel):
    """Request OTP payload."""
    mobile_number: str = Field(
        ...,
        description="Vendor mobile number",
        examples=["9876543210"]
    )


class RequestOTPResponse(BaseModel):
    """Request OTP response."""
    message: str = Field(default="OTP sent successfully")


class VerifyOTPRequest(BaseModel):
    """Verify OTP payload."""
    mobile_number: str = Field(..., description="Vendor mobile number")
    code: str = Field(..., description="6-digit OTP code", min_length=6, max_length=6)


class VerifyOTPResponse(BaseModel):
    """Verify OTP response with JWT token."""
    token: str = Field(..., description="JWT access token")
    vendor_id: str = Field(..., description="Vendor UUID")
    mobile_number: str = Field(..., description="Vendor mobile number")
    onboarding_completed: bool = Field(..., description="False until the business profile is saved")


# Dependency to get AuthService
def get_auth_service(
    db: Session = Depends(get_db)
) -> AuthService:
    """Get AuthService instance with database session."""
    return AuthService(db)


# Routes
@router.post(
    "/request-otp",
    response_model=RequestOTPResponse,
    status_code=status.HTTP_200_OK,
    summary="Request OTP",
    description="Send OTP code to a mobile number for login"
)
async def request_otp(
    request: RequestOTPRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Request OTP for a mobile number.

    Code is valid for otp_ttl_seconds (5 minutes by default).

    Raises:
        400: Invalid mobile number
        500: Failed to send OTP
    """
    try:
        success = await auth_service.request_otp(request.mobile_number)
    except ValueError as e:
        raise BadRequestException(str(e))

    if not success:
        logger.error("OTP delivery failed", extra={"mobile_number": request.mobile_number})
        raise AppException("Failed to send OTP. Please try again.")

    return RequestOTPResponse()


@router.post(
    "/verify-otp",
    response_model=VerifyOTPResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify OTP",
    description="Verify OTP code and receive JWT access token"
)
async def verify_otp(
    request: VerifyOTPRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Verify OTP and get JWT token.

    Creates the vendor on first login.

    Raises:
        401: Invalid or expired OTP code
    """
    result = await auth_service.verify_otp(request.mobile_number, request.code)

    if not result:
        raise UnauthorizedException("Invalid or expired OTP code")

    return VerifyOTPResponse(**result)
