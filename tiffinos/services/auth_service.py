"""Authentication service for OTP-based vendor login.

Handles the complete authentication flow:
1. Request OTP: Generate and send code to the vendor's mobile number
2. Verify OTP: Validate code and issue JWT token
3. Vendor management: Create the vendor on first login
"""
from typing import Optional

from sqlalchemy.orm import Session

from tiffinos.lib.jwt import create_access_token
from tiffinos.services.otp_provider import otp_service
from tiffinos.services.vendor_service import VendorService


class AuthService:
    """Authentication service for OTP-based login.

    Creates new vendors automatically on first login; the client then
    routes them to onboarding while onboarding_completed is False.
    """

    def __init__(self, session: Session):
        self.session = session
        self.otp_service = otp_service
        self.vendors = VendorService(session)

    async def request_otp(self, mobile_number: str) -> bool:
        """Request OTP code for a mobile number.

        Raises:
            ValueError: If the mobile number is invalid
        """
        return await self.otp_service.request_otp(mobile_number)

    async def verify_otp(self, mobile_number: str, code: str) -> Optional[dict]:
        """Verify OTP code and issue JWT token.

        Returns:
            Dict with token and vendor info if successful, None if invalid code
            {
                "token": "jwt_token_string",
                "vendor_id": "uuid",
                "mobile_number": "9876543210",
                "onboarding_completed": False
            }
        """
        valid = await self.otp_service.verify_otp(mobile_number, code)

        if not valid:
            return None

        vendor = self.vendors.get_or_create_by_mobile(mobile_number)

        token = create_access_token(
            vendor_id=str(vendor.id),
            mobile_number=vendor.mobile_number,
        )

        return {
            "token": token,
            "vendor_id": str(vendor.id),
            "mobile_number": vendor.mobile_number,
            "onboarding_completed": vendor.onboarding_completed,
        }

    async def logout(self, mobile_number: str) -> None:
        """Drop any outstanding OTP for the number."""
        self.otp_service.clear_otp(mobile_number)
