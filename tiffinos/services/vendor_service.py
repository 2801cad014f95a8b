"""
Vendor profile and onboarding.
"""
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import NotFoundException
from tiffinos.lib.config_flags import get_billing_defaults
from tiffinos.lib.logging import get_logger
from tiffinos.models.customers import MealKind
from tiffinos.models.menu_items import MenuCategory, MenuItem
from tiffinos.models.vendors import Vendor


logger = get_logger(__name__)

PROFILE_FIELDS = (
    "business_name",
    "owner_name",
    "whatsapp_number",
    "business_type",
    "address",
)


class VendorService:
    """Looks up, creates and updates vendors."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get(self, vendor_id: UUID) -> Vendor:
        vendor = self.db.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFoundException("Vendor", str(vendor_id))
        return vendor

    def find_by_mobile(self, mobile_number: str) -> Optional[Vendor]:
        stmt = select(Vendor).where(Vendor.mobile_number == mobile_number)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create_by_mobile(self, mobile_number: str) -> Vendor:
        """Return the vendor for a verified mobile number, creating a blank one on first login."""
        vendor = self.find_by_mobile(mobile_number)
        now = datetime.now(timezone.utc)

        if vendor:
            vendor.last_login_at = now
            self.db.commit()
            return vendor

        vendor = Vendor(
            mobile_number=mobile_number,
            whatsapp_number=mobile_number,
            last_login_at=now,
            onboarding_completed=False,
        )
        self.db.add(vendor)
        self.db.commit()
        self.db.refresh(vendor)

        logger.info("Vendor created on first login", extra={"vendor_id": str(vendor.id)})
        return vendor

    def update_profile(self, vendor_id: UUID, fields: dict[str, Any]) -> Vendor:
        vendor = self.get(vendor_id)
        for name in PROFILE_FIELDS:
            if name in fields and fields[name] is not None:
                setattr(vendor, name, fields[name])
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def complete_onboarding(self, vendor_id: UUID, fields: dict[str, Any]) -> Vendor:
        """
        Save the business profile and seed the default per-meal menu items.

        Seeding is skipped when the vendor already has default items, so
        onboarding can be resubmitted safely.
        """
        vendor = self.update_profile(vendor_id, fields)

        existing = self.db.execute(
            select(MenuItem.id).where(
                MenuItem.vendor_id == vendor.id,
                MenuItem.is_default == True,  # noqa: E712
            )
        ).first()
        if existing is None:
            defaults = get_billing_defaults()
            self.db.add_all([
                MenuItem(
                    vendor_id=vendor.id,
                    item_name="Chapati Bhaji",
                    category=MenuCategory.MEAL,
                    meal_kind=MealKind.CHAPATI_BHAJI,
                    walk_in_price=defaults.default_lunch_price,
                    monthly_price=defaults.default_lunch_price,
                    is_default=True,
                ),
                MenuItem(
                    vendor_id=vendor.id,
                    item_name="Rice Plate",
                    category=MenuCategory.MEAL,
                    meal_kind=MealKind.RICE_PLATE,
                    walk_in_price=defaults.default_dinner_price,
                    monthly_price=defaults.default_dinner_price,
                    is_default=True,
                ),
            ])

        vendor.onboarding_completed = True
        self.db.commit()
        self.db.refresh(vendor)

        logger.info("Vendor onboarding completed", extra={"vendor_id": str(vendor.id)})
        return vendor
