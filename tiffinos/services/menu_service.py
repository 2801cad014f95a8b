"""
Menu management and per-meal price resolution.

Default menu items tagged with a meal kind (chapati_bhaji, rice_plate) set
the per-meal price of that plate. A customer's lunch_meal_type and
dinner_meal_type pick which plate prices the lunch and dinner slots.
Lookups are cached per vendor for a short TTL and dropped on any edit.
"""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import NotFoundException
from tiffinos.lib.cache import get_menu_cache
from tiffinos.lib.config_flags import get_billing_defaults
from tiffinos.lib.logging import get_logger
from tiffinos.models.customers import Customer, MealKind
from tiffinos.models.menu_items import MenuItem
from tiffinos.services.billing_engine import MenuPrices


logger = get_logger(__name__)

MENU_FIELDS = (
    "item_name",
    "category",
    "meal_kind",
    "walk_in_price",
    "monthly_price",
    "description",
    "is_default",
)


def _cache_key(vendor_id: UUID) -> str:
    return f"menu-prices:{vendor_id}"


class MenuService:
    """CRUD over menu items plus price lookups for billing."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.cache = get_menu_cache()

    def list_items(self, vendor_id: UUID) -> list[MenuItem]:
        stmt = (
            select(MenuItem)
            .where(MenuItem.vendor_id == vendor_id, MenuItem.is_active == True)  # noqa: E712
            .order_by(MenuItem.category, MenuItem.item_name)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_item(self, vendor_id: UUID, item_id: UUID) -> MenuItem:
        item = self.db.get(MenuItem, item_id)
        if item is None or item.vendor_id != vendor_id or not item.is_active:
            raise NotFoundException("Menu item", str(item_id))
        return item

    def create_item(self, vendor_id: UUID, fields: dict[str, Any]) -> MenuItem:
        item = MenuItem(vendor_id=vendor_id, **{k: v for k, v in fields.items() if k in MENU_FIELDS})
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        self.cache.clear(_cache_key(vendor_id))
        return item

    def update_item(self, vendor_id: UUID, item_id: UUID, fields: dict[str, Any]) -> MenuItem:
        item = self.get_item(vendor_id, item_id)
        for name in MENU_FIELDS:
            if name in fields and fields[name] is not None:
                setattr(item, name, fields[name])
        self.db.commit()
        self.db.refresh(item)
        self.cache.clear(_cache_key(vendor_id))
        return item

    def deactivate_item(self, vendor_id: UUID, item_id: UUID) -> None:
        item = self.get_item(vendor_id, item_id)
        item.is_active = False
        self.db.commit()
        self.cache.clear(_cache_key(vendor_id))

    def plate_prices(self, vendor_id: UUID) -> dict[MealKind, int]:
        """Monthly price per meal kind from the vendor's default items, with fallbacks."""
        cached = self.cache.get(_cache_key(vendor_id))
        if cached is not None:
            return cached

        defaults = get_billing_defaults()
        prices = {
            MealKind.CHAPATI_BHAJI: defaults.default_lunch_price,
            MealKind.RICE_PLATE: defaults.default_dinner_price,
        }
        stmt = select(MenuItem).where(
            MenuItem.vendor_id == vendor_id,
            MenuItem.is_default == True,  # noqa: E712
            MenuItem.is_active == True,  # noqa: E712
            MenuItem.meal_kind.is_not(None),
        )
        for item in self.db.execute(stmt).scalars():
            if item.monthly_price:
                prices[item.meal_kind] = item.monthly_price

        self.cache.set(_cache_key(vendor_id), prices)
        logger.debug("Menu prices loaded", extra={"vendor_id": str(vendor_id)})
        return prices

    def resolve_menu_prices(self, vendor_id: UUID, customer: Optional[Customer] = None) -> MenuPrices:
        """
        Lunch and dinner price for a customer.

        Without a customer the slots take the default plates: chapati_bhaji
        for lunch and rice_plate for dinner.
        """
        plates = self.plate_prices(vendor_id)
        lunch_kind = customer.lunch_meal_type if customer else MealKind.CHAPATI_BHAJI
        dinner_kind = customer.dinner_meal_type if customer else MealKind.RICE_PLATE
        return MenuPrices(
            lunch_price=plates[MealKind(lunch_kind)],
            dinner_price=plates[MealKind(dinner_kind)],
        )
