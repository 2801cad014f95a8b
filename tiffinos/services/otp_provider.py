"""OTP provider abstraction with a console adapter.

OTP codes are generated, hashed, and stored with short TTL.
Vendors log in with their mobile number; SMS delivery can be added as
another OTPProvider without touching OTPService.
"""
import hashlib
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from tiffinos.lib.logging import get_logger
from tiffinos.lib.settings import settings


logger = get_logger(__name__)


class OTPProvider(ABC):
    """Abstract base class for OTP delivery providers."""

    @abstractmethod
    async def send_otp(self, mobile_number: str, code: str) -> bool:
        """Send OTP code to a mobile number.

        Args:
            mobile_number: Recipient mobile number
            code: OTP code to send

        Returns:
            True if sent successfully, False otherwise
        """
        pass


class ConsoleOTPProvider(OTPProvider):
    """Console OTP provider for development/testing.

    Writes OTP codes to the log instead of sending an SMS.
    """

    async def send_otp(self, mobile_number: str, code: str) -> bool:
        logger.info("OTP generated", extra={"mobile_number": mobile_number, "otp_code": code})
        return True


class OTPService:
    """OTP service for generating, storing, and verifying codes.

    Handles OTP lifecycle:
    - Generate random 6-digit codes
    - Hash codes for storage
    - Track expiration (otp_ttl_seconds)
    - Verify codes against stored hashes, single use
    """

    def __init__(self):
        """Initialize OTP service with configured provider."""
        self.provider = self._get_provider()
        # In-memory storage: {mobile_number: (hashed_code, expiry_time)}
        self._store: dict[str, tuple[str, datetime]] = {}

    def _get_provider(self) -> OTPProvider:
        """Get OTP provider based on configuration."""
        provider_name = settings.otp_provider.lower()

        if provider_name == "console":
            return ConsoleOTPProvider()
        raise ValueError(
            f"Unknown OTP provider: {provider_name}. "
            f"Valid options: console"
        )

    def generate_code(self) -> str:
        """Generate a random 6-digit OTP code."""
        return f"{secrets.randbelow(1000000):06d}"

    def _hash_code(self, code: str) -> str:
        """Hash OTP code for storage."""
        return hashlib.sha256(code.encode()).hexdigest()

    async def request_otp(self, mobile_number: str) -> bool:
        """Generate and send OTP to a mobile number.

        Returns:
            True if OTP sent successfully

        Raises:
            ValueError: If mobile number is invalid
        """
        digits = mobile_number.lstrip("+")
        if not digits.isdigit() or len(digits) < 10:
            raise ValueError("Invalid mobile number")

        code = self.generate_code()
        expiry = datetime.now(timezone.utc) + timedelta(
            seconds=settings.otp_ttl_seconds
        )
        self._store[mobile_number] = (self._hash_code(code), expiry)

        success = await self.provider.send_otp(mobile_number, code)

        if not success:
            # Clean up on failure
            del self._store[mobile_number]

        return success

    async def verify_otp(self, mobile_number: str, code: str) -> bool:
        """Verify OTP code for a mobile number.

        Returns:
            True if code is valid and not expired
        """
        if mobile_number not in self._store:
            return False

        hashed, expiry = self._store[mobile_number]

        if datetime.now(timezone.utc) > expiry:
            del self._store[mobile_number]
            return False

        if self._hash_code(code) != hashed:
            return False

        # Success - clean up used code
        del self._store[mobile_number]
        return True

    def clear_otp(self, mobile_number: str) -> None:
        """Clear OTP for a mobile number (e.g., on logout)."""
        self._store.pop(mobile_number, None)


# Global OTP service instance
otp_service = OTPService()
