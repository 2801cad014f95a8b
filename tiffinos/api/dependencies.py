"""
API dependencies for FastAPI dependency injection.

Provides common dependencies like database sessions, the current date and
the authenticated vendor.
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import NotFoundException, UnauthorizedException
from tiffinos.lib.db import get_db as get_db_session
from tiffinos.lib.jwt import verify_token
from tiffinos.models.vendors import Vendor
from tiffinos.services.vendor_service import VendorService


# Re-export get_db for convenience
get_db = get_db_session


# HTTP Bearer token security scheme; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


def get_today() -> date:
    """Business date for the request. Overridden in tests."""
    return date.today()


def get_current_vendor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Vendor:
    """
    Dependency to get the current authenticated vendor from the JWT token.

    Raises:
        UnauthorizedException: token missing, invalid, expired, or the vendor no longer exists
    """
    if credentials is None:
        raise UnauthorizedException("Missing authentication token")

    try:
        payload = verify_token(credentials.credentials)
    except InvalidTokenError:
        raise UnauthorizedException("Invalid authentication token")

    vendor_id = payload.get("sub")
    if not vendor_id:
        raise UnauthorizedException("Invalid authentication token")

    try:
        return VendorService(db).get(UUID(vendor_id))
    except (ValueError, NotFoundException):
        raise UnauthorizedException("Vendor not found")
