"""JWT token generation and validation utilities.

Uses the algorithm and secret from settings.
Tokens carry the standard claims (exp, iat, sub) where sub is the vendor id,
plus a custom mobile_number claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError

from tiffinos.lib.settings import settings


def create_access_token(
    vendor_id: str,
    mobile_number: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token for a vendor.

    Args:
        vendor_id: UUID of the vendor (stored in 'sub' claim)
        mobile_number: Mobile number the vendor logged in with
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token("123e4567-e89b-12d3-a456-426614174000", "9876543210")
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": vendor_id,
        "mobile_number": mobile_number,
        "iat": now,
        "exp": expire,
    }

    return jwt.encode(
        payload,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Args:
        token: JWT token string to verify

    Returns:
        Decoded token payload with claims

    Raises:
        InvalidTokenError: If token is invalid, expired, or signature doesn't match
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except InvalidTokenError as e:
        # Caller decides how to report expired / tampered tokens
        raise e


def get_vendor_from_token(token: str) -> tuple[str, str]:
    """Extract vendor_id and mobile_number from a token.

    Raises:
        InvalidTokenError: If token is invalid
        KeyError: If required claims are missing
    """
    payload = verify_token(token)
    return payload["sub"], payload["mobile_number"]
